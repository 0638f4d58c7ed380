#
# Copyright (C) 2024 The sdf-fft developers
#
# This file is part of sdf-fft
#
# SPDX-License-Identifier: MIT
#

from amaranth import *

from .butterfly import Butterfly
from .control import FFTControl
from .rotator import Rotator
from .util import bit_reversed_order


class FFT(Elaboratable):
    """R2SDF FFT

    Pipelined radix-2 decimation-in-frequency FFT with single-path delay
    feedback butterflies. It accepts one sample per clock cycle and produces
    one sample per clock cycle. The datapath grows by one bit per stage and
    is never truncated, so the output width is ``width_in + order_log2``.

    Stage ``n`` (counting from the input) consists of a butterfly of order
    ``order_log2 - n`` working at width ``width_in + n + 1`` and, except for
    the last stage, a rotator that multiplies by the twiddle factors of the
    stage.

    The output is in bit-reversed order: the sample presented in position
    ``p`` of each output vector corresponds to the FFT bin
    ``bit_reverse(p, order_log2)`` (see :meth: ``output_order``).

    Allowed input values:

    In order to prevent internal overflows after the twiddle factor
    multiplications, the input must have complex amplitude smaller or equal
    than 2**(width_in-1)-1 (the complex amplitude is defined as
    sqrt(re**2 + im**2)).

    Parameters
    ----------
    width_in : int
        Input width of the FFT.
    order_log2 : int
        log2 of the FFT order (size).
    width_twiddle : Optional[int]
        Width of the twiddle factors. By default, the same width as the input
        width is used.
    butterfly_storage : str
        Storage method to use for the butterflies (see :class: ``DelayLine``).
        The last butterfly always uses distributed storage.
    twiddle_storage : str
        Storage method to use for the twiddle factors (see
        :class: ``TwiddleTable``).

    Attributes
    ----------
    delay : int
        Delay (in samples) from input to output of the FFT.
    width_out : int
        Output width of the FFT.
    clken : Signal(), in
        Clock enable.
    reset : Signal(), in
        Synchronous reset. While asserted, the control counter is held at
        zero. The first sample presented after the reset is released is the
        first sample of an FFT vector.
    re_in : Signal(signed(width_in)), in
        Real part of the input sample.
    im_in : Signal(signed(width_in)), in
        Imaginary part of the input sample.
    re_out : Signal(signed(width_out)), out
        Real part of the output sample.
    im_out : Signal(signed(width_out)), out
        Imaginary part of the output sample.
    out_last : Signal(), out
        This signal is asserted whenever the last sample of the FFT vector
        is presented on the output.
    out_valid : Signal(), out
        This signal is asserted once the output corresponds to input samples
        presented after the last reset.
    """
    def __init__(self, width_in, order_log2, width_twiddle=None,
                 butterfly_storage='auto', twiddle_storage='auto'):
        if order_log2 < 1:
            raise ValueError(f'invalid FFT order_log2 {order_log2}')
        if width_in < 2:
            raise ValueError(f'invalid FFT input width {width_in}')
        if width_twiddle is None:
            width_twiddle = width_in
        self.order_log2 = order_log2
        self.width_in = width_in
        self.width_twiddle = width_twiddle
        self.nstages = nstages = order_log2

        self.clken = Signal()
        self.reset = Signal()
        self.re_in = Signal(signed(width_in))
        self.im_in = Signal(signed(width_in))
        self.re_out = Signal(signed(self.width_out))
        self.im_out = Signal(signed(self.width_out))
        self.out_last = Signal()
        self.out_valid = Signal()

        # The last butterfly has a delay line of length 1, which cannot be
        # implemented with a BRAM.
        self._butterflies = [
            Butterfly(
                nstages - j, width_in + j,
                storage=(butterfly_storage if j < nstages - 1
                         else 'distributed'))
            for j in range(nstages)]
        self._rotators = [
            Rotator(width_in + j + 1, width_twiddle, nstages - j - 1,
                    storage=twiddle_storage)
            for j in range(nstages - 1)]
        self._check_widths()
        self._control = FFTControl(self._butterflies, self._rotators)

    @classmethod
    def from_config(cls, config):
        config.validate()
        return cls(config.width_in, config.order_log2,
                   width_twiddle=config.width_twiddle,
                   butterfly_storage=config.butterfly_storage,
                   twiddle_storage=config.twiddle_storage)

    def _check_widths(self):
        for j, bfly in enumerate(self._butterflies):
            assert bfly.w_out == self.width_in + j + 1
            if j < self.nstages - 1:
                rotator = self._rotators[j]
                assert rotator.sw == bfly.w_out
                assert self._butterflies[j + 1].w == rotator.sw
        assert self._butterflies[-1].w_out == self.width_out

    @property
    def width_out(self):
        return self.width_in + self.order_log2

    @property
    def stage_widths(self):
        return [bfly.w_out for bfly in self._butterflies]

    @property
    def delay(self):
        return self._control.delay

    @property
    def model_vlen(self):
        return 2**self.order_log2

    def output_order(self):
        return bit_reversed_order(self.order_log2)

    def model(self, re_in, im_in):
        re, im = re_in, im_in
        for j in range(self.nstages):
            re, im = self._butterflies[j].model(re, im)
            if j != self.nstages - 1:
                re, im = self._rotators[j].model(re, im)
        return re, im

    def ports(self):
        return [
            self.clken, self.reset,
            self.re_in, self.im_in,
            self.re_out, self.im_out,
            self.out_last, self.out_valid,
        ]

    def elaborate(self, platform):
        m = Module()
        for j, bfly in enumerate(self._butterflies):
            m.submodules[f'bfly{j}'] = bfly
        for j, rotator in enumerate(self._rotators):
            m.submodules[f'rotator{j}'] = rotator
        m.submodules.control = ctrl = self._control
        ctrl.connect_stages(m)
        first_bfly = self._butterflies[0]
        last_bfly = self._butterflies[-1]
        m.d.comb += [
            ctrl.clken.eq(self.clken),
            ctrl.reset.eq(self.reset),
            first_bfly.re_in.eq(self.re_in),
            first_bfly.im_in.eq(self.im_in),
            self.re_out.eq(last_bfly.re_out),
            self.im_out.eq(last_bfly.im_out),
            self.out_last.eq(ctrl.out_last),
            self.out_valid.eq(ctrl.out_valid),
        ]
        return m
