#
# Copyright (C) 2024 The sdf-fft developers
#
# This file is part of sdf-fft
#
# SPDX-License-Identifier: MIT
#

import contextlib
import io
import pathlib
import tempfile
import unittest

from sdf_fft import cli, configs
from sdf_fft.config import FFTConfig
from sdf_fft.fft import FFT


class TestConfig(unittest.TestCase):
    def test_presets(self):
        for name in ['default', 'small', 'spectrum_4k']:
            with self.subTest(config=name):
                config = getattr(configs, name)()
                config.validate()
                fft = FFT.from_config(config)
                self.assertEqual(fft.model_vlen, 2**config.order_log2)
                self.assertEqual(fft.width_out,
                                 config.width_in + config.order_log2)

    def test_from_config(self):
        config = FFTConfig()
        config.order_log2 = 5
        config.width_in = 10
        config.width_twiddle = 12
        config.butterfly_storage = 'bram'
        fft = FFT.from_config(config)
        self.assertEqual(fft.width_twiddle, 12)
        self.assertEqual(
            [bfly.storage for bfly in fft._butterflies],
            ['bram'] * 4 + ['distributed'])
        self.assertEqual(fft.delay, 31 + 6 * 4)

    def test_validate(self):
        for attr, value in [('order_log2', 0),
                            ('width_in', 1),
                            ('width_twiddle', 2),
                            ('butterfly_storage', 'lut'),
                            ('twiddle_storage', 'distributed')]:
            with self.subTest(attr=attr, value=value):
                config = FFTConfig()
                setattr(config, attr, value)
                with self.assertRaises(AssertionError):
                    config.validate()


class TestCli(unittest.TestCase):
    def test_verilog(self):
        with tempfile.TemporaryDirectory() as tmp:
            output = pathlib.Path(tmp) / 'fft.v'
            stdout = io.StringIO()
            with contextlib.redirect_stdout(stdout):
                cli.main(['--config', 'small', '--name', 'fft8',
                          str(output)])
            verilog = output.read_text()
        self.assertIn('module fft8', verilog)
        for port in ['clken', 're_in', 'im_out', 'out_last', 'out_valid']:
            self.assertIn(port, verilog)
        self.assertIn('size 8', stdout.getvalue())

    def test_unknown_config(self):
        with self.assertRaises(SystemExit):
            cli.main(['--config', 'nonexistent', 'out.v'])


if __name__ == '__main__':
    unittest.main()
