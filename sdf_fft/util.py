#
# Copyright (C) 2024 The sdf-fft developers
#
# This file is part of sdf-fft
#
# SPDX-License-Identifier: MIT
#

import numpy as np


def wrap_signed(x, nbits):
    """Reinterprets ``x`` modulo ``2**nbits`` as a two's complement number

    This is what happens when a wider value is assigned to a signed
    ``nbits`` signal. It works on ints and numpy integer arrays.
    """
    half = 1 << (nbits - 1)
    return (x + half) % (1 << nbits) - half


def bit_reverse(n, nbits):
    r = 0
    for _ in range(nbits):
        r = (r << 1) | (n & 1)
        n >>= 1
    return r


def bit_reversed_order(nbits):
    """Permutation that maps FFT output positions to frequency bins

    Position ``p`` of an output frame of the FFT holds bin
    ``bit_reversed_order(nbits)[p]``.
    """
    return np.array([bit_reverse(n, nbits) for n in range(2**nbits)])
