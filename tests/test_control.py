#
# Copyright (C) 2024 The sdf-fft developers
#
# This file is part of sdf-fft
#
# SPDX-License-Identifier: MIT
#

import unittest

from sdf_fft.butterfly import Phase
from sdf_fft.control import (
    ControlCounter, FFTControl, stage_control, twiddle_index)
from sdf_fft.fft import FFT
from .amaranth_sim import AmaranthSim


class TestSchedule(unittest.TestCase):
    def test_stage_control(self):
        order_log2 = 3
        expected = [
            [0, 0, 0, 0, 1, 1, 1, 1],
            [0, 0, 1, 1, 0, 0, 1, 1],
            [0, 1, 0, 1, 0, 1, 0, 1],
        ]
        for stage in range(order_log2):
            self.assertEqual(
                [stage_control(stage, t, order_log2) for t in range(8)],
                expected[stage])

    def test_twiddle_index(self):
        order_log2 = 4
        self.assertEqual(
            [twiddle_index(0, t, order_log2) for t in range(16)],
            list(range(8)) * 2)
        self.assertEqual(
            [twiddle_index(2, t, order_log2) for t in range(8)],
            [0, 1] * 4)

    def test_toggle_rate(self):
        # The control of stage n toggles every 2**(L-n-1) ticks.
        order_log2 = 6
        for stage in range(order_log2):
            toggles = sum(
                stage_control(stage, t, order_log2)
                != stage_control(stage, t + 1, order_log2)
                for t in range(2**order_log2 - 1))
            self.assertEqual(toggles, 2**(stage + 1) - 1)


class TestControlCounter(AmaranthSim):
    def test_counter(self):
        order_log2 = 3
        self.dut = ControlCounter(order_log2)

        async def bench(ctx):
            await ctx.tick()
            ctx.set(self.dut.clken, 1)
            for j in range(20):
                assert ctx.get(self.dut.count) == j % 8
                await ctx.tick()
            # holds when clken is deasserted
            value = ctx.get(self.dut.count)
            ctx.set(self.dut.clken, 0)
            for _ in range(3):
                await ctx.tick()
            assert ctx.get(self.dut.count) == value
            # reset has priority over clken
            ctx.set(self.dut.clken, 1)
            ctx.set(self.dut.reset, 1)
            for _ in range(3):
                await ctx.tick()
                assert ctx.get(self.dut.count) == 0
            ctx.set(self.dut.reset, 0)
            for j in range(10):
                assert ctx.get(self.dut.count) == j % 8
                await ctx.tick()

        self.simulate(bench)


class TestFFTControl(AmaranthSim):
    def test_delays(self):
        fft = FFT(12, 4)
        control = fft._control
        # butterflies delays are 8, 4, 2, 1 and rotators delays are 6
        self.assertEqual(control.delay_butterflies_input(), [0, 14, 24, 32])
        self.assertEqual(control.delay_rotators_input(), [8, 18, 26])
        self.assertEqual(control.delay, 33)

    def test_outputs(self):
        for twiddle_storage in ['lut', 'bram']:
            with self.subTest(twiddle_storage=twiddle_storage):
                self.common_test_outputs(twiddle_storage)

    def common_test_outputs(self, twiddle_storage):
        order_log2 = 4
        size = 2**order_log2
        fft = FFT(12, order_log2, butterfly_storage='bram',
                  twiddle_storage=twiddle_storage)
        control = fft._control
        self.dut = control
        bfly_offsets = control.delay_butterflies_input()
        rotator_offsets = [
            d - r.index_advance
            for d, r in zip(control.delay_rotators_input(), fft._rotators)]

        async def bench(ctx):
            await ctx.tick()
            ctx.set(control.clken, 1)
            for t in range(3 * size):
                for j, offset in enumerate(bfly_offsets):
                    tick = (t - offset) % size
                    assert ctx.get(control.phase[j]) == Phase(
                        stage_control(j, tick, order_log2))
                    if control.bram_waddr[j] is not None:
                        depth = 2**(order_log2 - j - 1)
                        assert (ctx.get(control.bram_waddr[j])
                                == tick % depth)
                        assert (ctx.get(control.bram_raddr[j])
                                == (tick + 1) % depth)
                for j, offset in enumerate(rotator_offsets):
                    tick = (t - offset) % size
                    assert ctx.get(control.quadrant[j]) == stage_control(
                        j, tick, order_log2)
                    assert ctx.get(control.twiddle_index[j]) == twiddle_index(
                        j, tick, order_log2)
                out_tick = (t - control.delay) % size
                assert ctx.get(control.out_last) == (out_tick == size - 1)
                assert ctx.get(control.out_valid) == (t >= control.delay)
                await ctx.tick()

        self.simulate(bench)


if __name__ == '__main__':
    unittest.main()
