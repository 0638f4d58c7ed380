#
# Copyright (C) 2024 The sdf-fft developers
#
# This file is part of sdf-fft
#
# SPDX-License-Identifier: MIT
#

from amaranth import *

from .butterfly import Phase


def stage_control(stage, tick, order_log2):
    """Butterfly phase bit of a stage

    Returns bit ``order_log2 - stage - 1`` of ``tick``. This works both with
    Python ints and with Amaranth values. ``tick`` must be aligned with the
    samples entering the stage, so that ``tick = 0`` for the first sample of
    each block.
    """
    return (tick >> (order_log2 - stage - 1)) & 1


def twiddle_index(stage, tick, order_log2):
    """Twiddle table angle index of a stage

    Returns the ``order_log2 - stage - 1`` LSBs of ``tick``. This works both
    with Python ints and with Amaranth values. ``tick`` must be aligned with
    the samples entering the rotator of the stage.
    """
    return tick & ((1 << (order_log2 - stage - 1)) - 1)


class ControlCounter(Elaboratable):
    """Free-running control counter

    Parameters
    ----------
    order_log2 : int
        Width of the counter.

    Attributes
    ----------
    clken : Signal(), in
        Clock enable. The counter increments on each clock-enabled cycle.
    reset : Signal(), in
        Synchronous reset. Holds the counter at zero while asserted,
        regardless of ``clken``.
    count : Signal(order_log2), out
        Counter value.
    """
    def __init__(self, order_log2):
        self.order_log2 = order_log2

        self.clken = Signal()
        self.reset = Signal()
        self.count = Signal(order_log2)

    def elaborate(self, platform):
        m = Module()
        with m.If(self.reset):
            m.d.sync += self.count.eq(0)
        with m.Elif(self.clken):
            m.d.sync += self.count.eq(self.count + 1)
        return m


class FFTControl(Elaboratable):
    """FFT controller

    This module supplies control inputs to the butterfly and rotator
    modules. All the control signals are derived from a single
    :class: ``ControlCounter``. Each stage looks at the counter minus the
    delay from the FFT input to the stage.

    Parameters
    ----------
    butterflies : list
        List of butterfly modules, ordered from input to output.
    rotators : list
        List of rotator modules, ordered from input to output.

    Attributes
    ----------
    delay : int
        Delay (in samples) from input to output of the FFT.
    clken : Signal(), in
        Clock enable.
    reset : Signal(), in
        Synchronous reset of the control counter.
    count : Signal(order_log2), out
        Value of the control counter.
    phase : list[Signal(Phase)], out
        List of ``phase`` output signals for each of the butterflies.
    bram_raddr : list[Optional[Signal(...)]], out
        List of ``bram_raddr`` output signals for each of the butterflies using
        BRAM storage (and None in the positions corresponding to distributed
        storage butterflies).
    bram_waddr : list[Optional[Signal(...)]], out
        List of ``bram_waddr`` output signals for each of the butterflies using
        BRAM storage (and None in the positions corresponding to distributed
        storage butterflies).
    quadrant : list[Signal()], out
        List of ``quadrant`` output signals for each of the rotators.
    twiddle_index : list[Signal(...)], out
        List of ``index`` output signals for each of the rotators.
    out_last : Signal(), out
        This signal is asserted when the last sample of each transform is
        presented at the output.
    out_valid : Signal(), out
        This signal is deasserted after a reset until the first sample of the
        first transform computed after the reset is presented at the output.
    """
    def __init__(self, butterflies, rotators):
        assert len(butterflies) == len(rotators) + 1
        self.butterflies = butterflies
        self.rotators = rotators
        self.stages = len(butterflies)
        self.order_log2 = self.stages

        self.counter = ControlCounter(self.order_log2)

        self.clken = Signal()
        self.reset = Signal()
        self.count = Signal(self.order_log2)
        self.phase = [Signal(Phase, name=f'phase{j}')
                      for j in range(self.stages)]
        self.bram_raddr = [Signal(bfly.bram_raddr.shape(),
                                  name=f'bram_raddr{j}')
                           if bfly.storage == 'bram' else None
                           for j, bfly in enumerate(self.butterflies)]
        self.bram_waddr = [Signal(bfly.bram_waddr.shape(),
                                  name=f'bram_waddr{j}')
                           if bfly.storage == 'bram' else None
                           for j, bfly in enumerate(self.butterflies)]
        self.quadrant = [Signal(name=f'quadrant{j}')
                         for j in range(self.stages - 1)]
        self.twiddle_index = [Signal(rotator.index.shape(),
                                     name=f'twiddle_index{j}')
                              for j, rotator in enumerate(self.rotators)]
        self.out_last = Signal()
        self.out_valid = Signal()

    @property
    def delay(self):
        return self.delay_butterflies_input()[-1] + self.butterflies[-1].delay

    def delay_butterflies_input(self):
        """Gives the delay from the FFT input to the input of each of the
        butterflies"""
        return [
            sum([butterfly.delay for butterfly in self.butterflies[:j]])
            + sum([rotator.delay for rotator in self.rotators[:j]])
            for j in range(self.stages)
        ]

    def delay_rotators_input(self):
        """Gives the delay from the FFT input to the input of each of the
        rotators"""
        delay_butterflies_input = self.delay_butterflies_input()
        return [
            delay_butterflies_input[j] + self.butterflies[j].delay
            for j in range(self.stages - 1)
        ]

    def elaborate(self, platform):
        m = Module()
        m.submodules.counter = counter = self.counter
        m.d.comb += [
            counter.clken.eq(self.clken),
            counter.reset.eq(self.reset),
            self.count.eq(counter.count),
        ]

        def tick(offset, name):
            t = Signal(self.order_log2, name=name)
            m.d.comb += t.eq(self.count - offset)
            return t

        for j, offset in enumerate(self.delay_butterflies_input()):
            t = tick(offset, f'tick_bfly{j}')
            m.d.comb += self.phase[j].as_value().eq(
                stage_control(j, t, self.order_log2))
            if self.butterflies[j].storage == 'bram':
                w = len(self.bram_waddr[j])
                m.d.comb += [
                    self.bram_waddr[j].eq(t[:w]),
                    self.bram_raddr[j].eq((t + 1)[:w]),
                ]

        for j, offset in enumerate(self.delay_rotators_input()):
            t = tick(offset - self.rotators[j].index_advance,
                     f'tick_rotator{j}')
            m.d.comb += [
                self.quadrant[j].eq(stage_control(j, t, self.order_log2)),
                self.twiddle_index[j].eq(
                    twiddle_index(j, t, self.order_log2)),
            ]

        t = tick(self.delay, 'tick_out')
        m.d.comb += self.out_last.eq(t.all())

        warmup = Signal(range(self.delay + 1))
        with m.If(self.reset):
            m.d.sync += warmup.eq(0)
        with m.Elif(self.clken & ~self.out_valid):
            m.d.sync += warmup.eq(warmup + 1)
        m.d.comb += self.out_valid.eq(warmup == self.delay)

        return m

    def connect_stages(self, module):
        """Connects the FFTControl to the stages and the datapaths of the
        stages"""
        m = module
        m.d.comb += (
            [stage.clken.eq(self.clken)
             for stage in self.butterflies + self.rotators]
            + [bfly.phase.as_value().eq(self.phase[j].as_value())
               for j, bfly in enumerate(self.butterflies)]
            + [bfly.bram_raddr.eq(self.bram_raddr[j])
               for j, bfly in enumerate(self.butterflies)
               if bfly.storage == 'bram']
            + [bfly.bram_waddr.eq(self.bram_waddr[j])
               for j, bfly in enumerate(self.butterflies)
               if bfly.storage == 'bram']
            + [rotator.quadrant.eq(self.quadrant[j])
               for j, rotator in enumerate(self.rotators)]
            + [rotator.index.eq(self.twiddle_index[j])
               for j, rotator in enumerate(self.rotators)]
            + [self.rotators[j].re_in.eq(self.butterflies[j].re_out)
               for j in range(self.stages - 1)]
            + [self.rotators[j].im_in.eq(self.butterflies[j].im_out)
               for j in range(self.stages - 1)]
            + [self.butterflies[j].re_in.eq(self.rotators[j-1].re_out)
               for j in range(1, self.stages)]
            + [self.butterflies[j].im_in.eq(self.rotators[j-1].im_out)
               for j in range(1, self.stages)]
        )
