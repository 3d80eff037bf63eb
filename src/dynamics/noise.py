"""
Two-dimensional gradient (Perlin) noise.

Returns values in [0, 1] that vary smoothly in both coordinates and are fully
determined by the input coordinates. Used to drive charge magnitude
oscillation.
"""

import torch
from typing import Union

# Ken Perlin's reference permutation
_PERMUTATION = [
    151, 160, 137, 91, 90, 15, 131, 13, 201, 95, 96, 53, 194, 233, 7, 225,
    140, 36, 103, 30, 69, 142, 8, 99, 37, 240, 21, 10, 23, 190, 6, 148,
    247, 120, 234, 75, 0, 26, 197, 62, 94, 252, 219, 203, 117, 35, 11, 32,
    57, 177, 33, 88, 237, 149, 56, 87, 174, 20, 125, 136, 171, 168, 68, 175,
    74, 165, 71, 134, 139, 48, 27, 166, 77, 146, 158, 231, 83, 111, 229, 122,
    60, 211, 133, 230, 220, 105, 92, 41, 55, 46, 245, 40, 244, 102, 143, 54,
    65, 25, 63, 161, 1, 216, 80, 73, 209, 76, 132, 187, 208, 89, 18, 169,
    200, 196, 135, 130, 116, 188, 159, 86, 164, 100, 109, 198, 173, 186, 3, 64,
    52, 217, 226, 250, 124, 123, 5, 202, 38, 147, 118, 126, 255, 82, 85, 212,
    207, 206, 59, 227, 47, 16, 58, 17, 182, 189, 28, 42, 223, 183, 170, 213,
    119, 248, 152, 2, 44, 154, 163, 70, 221, 153, 101, 155, 167, 43, 172, 9,
    129, 22, 39, 253, 19, 98, 108, 110, 79, 113, 224, 232, 178, 185, 112, 104,
    218, 246, 97, 228, 251, 34, 242, 193, 238, 210, 144, 12, 191, 179, 162, 241,
    81, 51, 145, 235, 249, 14, 239, 107, 49, 192, 214, 31, 181, 199, 106, 157,
    184, 84, 204, 176, 115, 121, 50, 45, 127, 4, 150, 254, 138, 236, 205, 93,
    222, 114, 67, 29, 24, 72, 243, 141, 128, 195, 78, 66, 215, 61, 156, 180,
]

_TABLE = torch.tensor(_PERMUTATION + _PERMUTATION, dtype=torch.long)

# Eight gradient directions: diagonals and axes
_GRADIENTS = torch.tensor([
    [1.0, 1.0], [-1.0, 1.0], [1.0, -1.0], [-1.0, -1.0],
    [1.0, 0.0], [-1.0, 0.0], [0.0, 1.0], [0.0, -1.0],
], dtype=torch.float64)


def _fade(t: torch.Tensor) -> torch.Tensor:
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def _corner(hash_value: torch.Tensor, dx: torch.Tensor, dy: torch.Tensor) -> torch.Tensor:
    g = _GRADIENTS[hash_value & 7]
    return g[..., 0] * dx + g[..., 1] * dy


def perlin_noise_2d(x: Union[torch.Tensor, float],
                    y: Union[torch.Tensor, float]) -> torch.Tensor:
    """
    Sample 2D Perlin noise.

    Args:
        x: First coordinate(s)
        y: Second coordinate(s), broadcastable against x

    Returns:
        Noise values in [0, 1] with the broadcast shape of x and y, float64,
        on the CPU
    """
    x = torch.as_tensor(x, dtype=torch.float64).cpu()
    y = torch.as_tensor(y, dtype=torch.float64).cpu()
    x, y = torch.broadcast_tensors(x, y)

    x0 = torch.floor(x)
    y0 = torch.floor(y)
    fx = x - x0
    fy = y - y0

    xi = x0.long() & 255
    yi = y0.long() & 255

    aa = _TABLE[_TABLE[xi] + yi]
    ab = _TABLE[_TABLE[xi] + yi + 1]
    ba = _TABLE[_TABLE[xi + 1] + yi]
    bb = _TABLE[_TABLE[xi + 1] + yi + 1]

    u = _fade(fx)
    v = _fade(fy)

    bottom = torch.lerp(_corner(aa, fx, fy), _corner(ba, fx - 1.0, fy), u)
    top = torch.lerp(_corner(ab, fx, fy - 1.0), _corner(bb, fx - 1.0, fy - 1.0), u)
    value = torch.lerp(bottom, top, v)

    return ((value + 1.0) * 0.5).clamp(0.0, 1.0)
