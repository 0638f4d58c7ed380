#
# Copyright (C) 2024 The sdf-fft developers
#
# This file is part of sdf-fft
#
# SPDX-License-Identifier: MIT
#

from amaranth import *
from amaranth.lib import enum
import numpy as np

from .delay import DelayLine
from .util import wrap_signed


class Phase(enum.Enum, shape=1):
    # The input is written into the delay line and the differences stored
    # in the delay line are released.
    FILL = 0
    # The input is combined with the sample held in the delay line.
    COMBINE = 1


class Butterfly(Elaboratable):
    """Radix-2 Single-Delay-Feedback butterfly

    During the ``FILL`` phase, the input samples are stored in the delay line
    and the output presents the differences that were stored in the delay
    line during the previous ``COMBINE`` phase. During the ``COMBINE`` phase,
    the held ("upper") sample that leaves the delay line is combined with
    the input ("lower") sample. The sum ``upper + lower`` is presented at the
    output and the difference ``upper - lower`` is stored in the delay line.

    Parameters
    ----------
    order : int
        The order of the butterfly determines the how many consecutive input
        elements the butterfly needs to consume to be able to produce all of
        its corresponding outputs. This number is ``2**order``. For a radix-2
        DIF FFT of size ``2**n``, the orders of the butterflies are ``n``,
        ``n-1``, ..., ``2``, ``1`` .
    width_in : int
        Width of the input samples. The output has a bit growth of one bit,
        so its width is ``width_in + 1``.
    storage : str
        Storage mode for the delay line (see :class: ``DelayLine``).

    Attributes
    ----------
    delay : int
        Delay (in samples) introduced by this module.
    clken : Signal(), in
        Clock enable.
    phase : Signal(Phase), in
        Controls the multiplexers of the butterfly. It should be ``FILL``
        for the first ``2**(order-1)`` input samples, and ``COMBINE`` for the
        next ``2**(order-1)`` input samples.
    bram_raddr : Signal(order-1), in
        Only present for ``'bram'`` storage mode. See :class: ``DelayLine``.
    bram_waddr : Signal(order-1), in
        Only present for ``'bram'`` storage mode. See :class: ``DelayLine``.
    re_in : Signal(signed(width_in)), in
        Real part of the input sample.
    im_in : Signal(signed(width_in)), in
        Imaginary part of the input sample.
    re_out : Signal(signed(width_in+1)), out
        Real part of the output sample.
    im_out : Signal(signed(width_in+1)), out
        Imaginary part of the output sample.
    """
    def __init__(self, order, width_in, storage='auto'):
        if order < 1:
            raise ValueError(f'invalid butterfly order {order}')
        self.order = order
        self.w = width_in
        self.w_out = width_in + 1
        # The delay line holds both inputs and differences, so it must be
        # sized for the output width.
        self.buff = DelayLine(self.buff_len, 2 * self.w_out, storage=storage)

        self.clken = Signal()
        self.phase = Signal(Phase)
        if self.storage == 'bram':
            self.bram_raddr = Signal(self.order - 1)
            self.bram_waddr = Signal(self.order - 1)
        self.re_in = Signal(signed(self.w))
        self.im_in = Signal(signed(self.w))
        self.re_out = Signal(signed(self.w_out))
        self.im_out = Signal(signed(self.w_out))

    @property
    def storage(self):
        return self.buff.storage

    @property
    def delay(self):
        return self.buff_len

    @property
    def buff_len(self):
        return 2**(self.order - 1)

    @property
    def model_vlen(self):
        return 2**self.order

    def model(self, re_in, im_in):
        v = self.model_vlen
        re_in, im_in = (np.array(x, 'int').reshape(-1, 2, v // 2)
                        for x in [re_in, im_in])
        re_out, im_out = [
            wrap_signed(
                np.concatenate(
                    (x[:, 0] + x[:, 1], x[:, 0] - x[:, 1]),
                    axis=-1).ravel(),
                self.w_out)
            for x in [re_in, im_in]]
        return re_out, im_out

    def elaborate(self, platform):
        m = Module()
        m.submodules.buff = buff = self.buff

        buff_re_in = Signal(signed(self.w_out))
        buff_im_in = Signal(signed(self.w_out))
        buff_re_out = buff.data_out[:self.w_out].as_signed()
        buff_im_out = buff.data_out[self.w_out:].as_signed()
        # In the COMBINE phase the delay line releases the samples stored
        # during the FILL phase, which only need width_in bits.
        upper_re = buff_re_out[:self.w].as_signed()
        upper_im = buff_im_out[:self.w].as_signed()

        combine = self.phase == Phase.COMBINE
        m.d.comb += [
            buff.clken.eq(self.clken),
            buff.data_in.eq(Cat(buff_re_in, buff_im_in)),
            buff_re_in.eq(Mux(combine, upper_re - self.re_in, self.re_in)),
            buff_im_in.eq(Mux(combine, upper_im - self.im_in, self.im_in)),
            self.re_out.eq(Mux(combine, upper_re + self.re_in, buff_re_out)),
            self.im_out.eq(Mux(combine, upper_im + self.im_in, buff_im_out)),
        ]
        if self.storage == 'bram':
            m.d.comb += [
                buff.bram_raddr.eq(self.bram_raddr),
                buff.bram_waddr.eq(self.bram_waddr),
            ]

        return m
