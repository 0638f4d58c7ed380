#
# Copyright (C) 2024 The sdf-fft developers
#
# This file is part of sdf-fft
#
# SPDX-License-Identifier: MIT
#

from amaranth import *
import numpy as np


def _register_chain(m, clken, x, length, name):
    chain = [Signal(x.shape(), name=f'{name}_q{j+1}', reset_less=True)
             for j in range(length)]
    with m.If(clken):
        m.d.sync += chain[0].eq(x)
        m.d.sync += [chain[j].eq(chain[j - 1]) for j in range(1, length)]
    return chain


# This follows the Xilinx template for the complex multiplier using DSP48e's.
class Cmult(Elaboratable):
    """Complex multiplier

    Pipelined complex multiplier that computes ``a * b`` with 3 real
    multipliers, using the identities

        re(a*b) = (re_b - im_b) * re_a + (re_a - im_a) * im_b
        im(a*b) = (re_b + im_b) * im_a + (re_a - im_a) * im_b

    It accepts one pair of operands per clock cycle.

    Parameters
    ----------
    a_width : int
        Width of operand 'a'.
    b_width : int
        Width of operand 'b'.
    truncate : int
        Number of LSBs to truncate in the output. Truncation is done by an
        arithmetic right shift, so the output is rounded towards minus
        infinity.

    Attributes
    ----------
    delay : int
        Delay (in samples) introduced by this module.
    clken : Signal(), in
        Clock enable.
    re_a : Signal(signed(a_width)), in
        Real part of operand 'a'.
    im_a : Signal(signed(a_width)), in
        Imaginary part of operand 'a'.
    re_b : Signal(signed(b_width)), in
        Real part of operand 'b'.
    im_b : Signal(signed(b_width)), in
        Imaginary part of operand 'b'.
    re_out : Signal(signed(a_width + b_width + 1 - truncate)), out
        Real part of result 'a * b'.
    im_out : Signal(signed(a_width + b_width + 1 - truncate)), out
        Imaginary part of result 'a * b'.
    """
    def __init__(self, a_width, b_width, truncate=0):
        self.aw = a_width
        self.bw = b_width
        self.truncate = truncate
        self.outw = self.aw + self.bw + 1 - truncate

        self.clken = Signal()
        self.re_a = Signal(signed(self.aw))
        self.im_a = Signal(signed(self.aw))
        self.re_b = Signal(signed(self.bw))
        self.im_b = Signal(signed(self.bw))
        self.re_out = Signal(signed(self.outw))
        self.im_out = Signal(signed(self.outw))

    @property
    def delay(self):
        return 6

    def model(self, re_a, im_a, re_b, im_b):
        re_a, im_a, re_b, im_b = (
            np.asarray(x, 'int') for x in [re_a, im_a, re_b, im_b])
        re_out = (re_a * re_b - im_a * im_b) >> self.truncate
        im_out = (re_a * im_b + im_a * re_b) >> self.truncate
        return re_out, im_out

    def elaborate(self, platform):
        m = Module()

        # Input registers. The 'a' operand needs a longer chain because it
        # enters the second stage of multipliers.
        re_a = _register_chain(m, self.clken, self.re_a, 4, 're_a')
        im_a = _register_chain(m, self.clken, self.im_a, 4, 'im_a')
        re_b = _register_chain(m, self.clken, self.re_b, 3, 're_b')
        im_b = _register_chain(m, self.clken, self.im_b, 3, 'im_b')

        multw = self.aw + self.bw + 1
        diff_a = Signal(signed(self.aw + 1), reset_less=True)
        sum_b = Signal(signed(self.bw + 1), reset_less=True)
        diff_b = Signal(signed(self.bw + 1), reset_less=True)
        common_prod = Signal(signed(multw), reset_less=True)
        re_prod = Signal(signed(multw), reset_less=True)
        im_prod = Signal(signed(multw), reset_less=True)
        re_acc = Signal(signed(multw), reset_less=True)
        im_acc = Signal(signed(multw), reset_less=True)

        with m.If(self.clken):
            # Common term (re_a - im_a) * im_b, which is shared by the real
            # and imaginary parts.
            m.d.sync += [
                diff_a.eq(re_a[0] - im_a[0]),
                common_prod.eq(diff_a * im_b[1]),
            ]
        common = _register_chain(m, self.clken, common_prod, 2, 'common')
        with m.If(self.clken):
            m.d.sync += [
                diff_b.eq(re_b[2] - im_b[2]),
                sum_b.eq(re_b[2] + im_b[2]),
                re_prod.eq(diff_b * re_a[3]),
                im_prod.eq(sum_b * im_a[3]),
                re_acc.eq(re_prod + common[1]),
                im_acc.eq(im_prod + common[1]),
            ]

        m.d.comb += [
            self.re_out.eq(re_acc >> self.truncate),
            self.im_out.eq(im_acc >> self.truncate),
        ]
        return m
