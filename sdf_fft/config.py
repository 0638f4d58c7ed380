#
# Copyright (C) 2024 The sdf-fft developers
#
# This file is part of sdf-fft
#
# SPDX-License-Identifier: MIT
#

class FFTConfig:
    """FFT configuration

    This class defines the elaboration-time parameters of an :class: ``FFT``.
    """
    def __init__(self):
        # create default configuration

        # transform
        self.order_log2 = 10

        # datapath
        self.width_in = 16
        self.width_twiddle = 18

        # storage
        self.butterfly_storage = 'auto'
        self.twiddle_storage = 'auto'

    def validate(self):
        assert self.order_log2 >= 1
        assert self.width_in >= 2
        assert self.width_twiddle >= 3
        assert self.butterfly_storage in ['auto', 'distributed', 'bram']
        assert self.twiddle_storage in ['auto', 'lut', 'bram']
