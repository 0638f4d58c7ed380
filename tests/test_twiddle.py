#
# Copyright (C) 2024 The sdf-fft developers
#
# This file is part of sdf-fft
#
# SPDX-License-Identifier: MIT
#

import numpy as np

import unittest

from sdf_fft.twiddle import TwiddleTable
from .amaranth_sim import AmaranthSim


class TestTwiddleTable(AmaranthSim):
    def test_matches_direct_evaluation(self):
        for index_width in range(1, 8):
            for twiddle_width in [5, 10, 16]:
                with self.subTest(index_width=index_width,
                                  twiddle_width=twiddle_width):
                    self.common_direct_evaluation(index_width, twiddle_width)

    def common_direct_evaluation(self, index_width, twiddle_width):
        table = TwiddleTable(index_width, twiddle_width)
        cos, sin = (np.array(x) for x in table.coefficients())
        period = 2**(index_width + 1)
        twiddles = np.array(
            [1] * (period // 2)
            + [np.exp(-1j * np.pi * k / 2**index_width)
               for k in range(period // 2)])
        # Rounded to nearest, except for the entries that are pulled back
        # inside the unit circle, which are off by at most one more LSB.
        assert np.all(np.abs(cos - table.scale * twiddles.real) <= 1.5)
        assert np.all(np.abs(sin + table.scale * twiddles.imag) <= 1.5)
        assert np.all(cos**2 + sin**2 <= table.scale**2)

    def test_magnitude_not_above_one(self):
        # round(8 * cos(pi/4)) = 6 would give a magnitude of 1.06
        table = TwiddleTable(2, 5)
        cos, sin = table.quarter_wave()
        self.assertEqual(cos, [8, 5, 0])
        self.assertEqual(sin, [0, 6, 8])

    def test_small_table(self):
        # Twiddles of a 4-point stage: 1, 1, 1, -1j
        table = TwiddleTable(1, 8)
        cos, sin = table.coefficients()
        self.assertEqual(cos, [64, 64, 64, 0])
        self.assertEqual(sin, [0, 0, 0, 64])

    def test_quarter_wave_size(self):
        table = TwiddleTable(5, 12)
        cos, sin = table.quarter_wave()
        self.assertEqual(len(cos), 2**4 + 1)
        self.assertEqual(cos[0], table.scale)
        self.assertEqual(sin[-1], table.scale)
        self.assertEqual(cos[-1], 0)

    def test_auto_storage(self):
        self.assertEqual(TwiddleTable(8, 16).storage, 'lut')
        self.assertEqual(TwiddleTable(9, 16).storage, 'bram')

    def test_invalid(self):
        with self.assertRaises(ValueError):
            TwiddleTable(0, 16)
        with self.assertRaises(ValueError):
            TwiddleTable(4, 2)
        with self.assertRaises(ValueError):
            TwiddleTable(4, 16, storage='rom')

    def test_lut(self):
        self.common_test_hardware(TwiddleTable(4, 14, storage='lut'))

    def test_bram(self):
        self.common_test_hardware(TwiddleTable(4, 14, storage='bram'))

    def test_index_width_1(self):
        self.common_test_hardware(TwiddleTable(1, 10, storage='lut'))

    def test_lut_narrow(self):
        self.common_test_hardware(TwiddleTable(2, 5, storage='lut'))

    def common_test_hardware(self, table):
        self.dut = table
        adv = table.index_advance
        addresses = np.random.randint(0, table.period, 100)
        comb = table.storage == 'lut'

        async def bench(ctx):
            for j in range(addresses.size + adv):
                if comb:
                    await ctx.delay(10e-9)
                else:
                    await ctx.tick()
                ctx.set(table.clken, 1)
                if j < addresses.size:
                    address = int(addresses[j])
                    ctx.set(table.quadrant, address >> table.m)
                    ctx.set(table.index, address & (2**table.m - 1))
                if j >= adv:
                    address = int(addresses[j - adv])
                    expected = table.model(address >> table.m,
                                           address & (2**table.m - 1))
                    out = (ctx.get(table.cos), ctx.get(table.sin))
                    assert out == expected, \
                        f'out = {out}, expected = {expected} @ cycle = {j}'

        self.simulate(bench, clock=not comb)


if __name__ == '__main__':
    unittest.main()
