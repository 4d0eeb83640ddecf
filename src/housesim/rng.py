import numpy as np


def make_rng(seed=None):
    """Seeded generator shared by every stochastic pass of a game room.

    Integer seeds are used as-is; strings (room codes, export seeds) are
    folded into an integer so replays from an exported log line up.
    """
    if isinstance(seed, str):
        seed = int.from_bytes(seed.encode("utf-8"), "big") % (2**63)
    return np.random.default_rng(seed)


def gaussian_noise(rng, sigma):
    """Box-Muller draw with mean 0 and the given standard deviation.

    Always consumes exactly two uniforms so the draw order stays fixed.
    """
    u1 = max(1e-10, float(rng.random()))   # avoid log(0)
    u2 = float(rng.random())
    z = np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)
    return float(z * sigma)


def clamp(value, lo, hi):
    return max(lo, min(hi, value))


def lerp(current, target, t):
    return current + (target - current) * t
