#
# Copyright (C) 2024 The sdf-fft developers
#
# This file is part of sdf-fft
#
# SPDX-License-Identifier: MIT
#

from amaranth import *
import numpy as np

from .cmult import Cmult
from .twiddle import TwiddleTable
from .util import wrap_signed


class Rotator(Elaboratable):
    """Twiddle factor rotator

    This module contains the twiddle factor table of an R2SDF stage and the
    complex multiplier that rotates the samples by the twiddle factors. The
    product is truncated back to the input width.

    Parameters
    ----------
    sample_width : int
        Width of the input and output samples.
    twiddle_width : int
        Width of the twiddle factors.
    index_width : int
        Width of the twiddle index. The twiddle sequence has period
        ``2**(index_width+1)``.
    storage : str
        Storage mode for the twiddle table (see :class: ``TwiddleTable``).

    Attributes
    ----------
    delay : int
        Delay (in samples) introduced by this module.
    index_advance : int
        Number of cycles by which ``quadrant`` and ``index`` must be presented
        in advance of the corresponding input sample.
    clken : Signal(), in
        Clock enable.
    quadrant : Signal(), in
        Twiddle table quadrant (see :class: ``TwiddleTable``).
    index : Signal(index_width), in
        Twiddle table angle index.
    re_in : Signal(signed(sample_width)), in
        Real part of the input sample.
    im_in : Signal(signed(sample_width)), in
        Imaginary part of the input sample.
    re_out : Signal(signed(sample_width)), out
        Real part of the output sample.
    im_out : Signal(signed(sample_width)), out
        Imaginary part of the output sample.
    """
    def __init__(self, sample_width, twiddle_width, index_width,
                 storage='auto'):
        self.sw = sample_width
        self.tw = twiddle_width
        self.table = TwiddleTable(index_width, twiddle_width, storage=storage)
        self.cmult = Cmult(a_width=self.sw, b_width=self.tw,
                           truncate=self.truncate)

        self.clken = Signal()
        self.quadrant = Signal()
        self.index = Signal(index_width)
        self.re_in = Signal(signed(self.sw))
        self.im_in = Signal(signed(self.sw))
        self.re_out = Signal(signed(self.sw))
        self.im_out = Signal(signed(self.sw))

    @property
    def delay(self):
        return self.cmult.delay

    @property
    def index_advance(self):
        return self.table.index_advance

    @property
    def truncate(self):
        # Removes the twiddle scale
        return self.tw - 2

    @property
    def model_vlen(self):
        return self.table.period

    def model(self, re_in, im_in):
        v = self.model_vlen
        re_in, im_in = (np.array(x, 'int').reshape(-1, v)
                        for x in [re_in, im_in])
        cos, sin = (np.array(x, 'int') for x in self.table.coefficients())
        re_out, im_out = self.cmult.model(re_in, im_in, cos, -sin)
        return (wrap_signed(re_out.ravel(), self.sw),
                wrap_signed(im_out.ravel(), self.sw))

    def elaborate(self, platform):
        m = Module()
        m.submodules.table = table = self.table
        m.submodules.cmult = cmult = self.cmult
        m.d.comb += [
            table.clken.eq(self.clken),
            table.quadrant.eq(self.quadrant),
            table.index.eq(self.index),
            cmult.clken.eq(self.clken),
            cmult.re_a.eq(self.re_in),
            cmult.im_a.eq(self.im_in),
            cmult.re_b.eq(table.cos),
            cmult.im_b.eq(-table.sin),
            self.re_out.eq(cmult.re_out),
            self.im_out.eq(cmult.im_out),
        ]
        return m
