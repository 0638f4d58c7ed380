#
# Copyright (C) 2024 The sdf-fft developers
#
# This file is part of sdf-fft
#
# SPDX-License-Identifier: MIT
#

from .config import FFTConfig


def default():
    """Default configuration: 1024 points, 16 bit input"""
    return FFTConfig()


def small():
    """8-point FFT with 12 bit input, useful for inspecting the netlist"""
    config = FFTConfig()
    config.order_log2 = 3
    config.width_in = 12
    config.width_twiddle = 12
    return config


def spectrum_4k():
    """4096-point FFT with 12 bit input and BRAM twiddles"""
    config = FFTConfig()
    config.order_log2 = 12
    config.width_in = 12
    config.width_twiddle = 16
    config.twiddle_storage = 'bram'
    return config
