#
# Copyright (C) 2024 The sdf-fft developers
#
# This file is part of sdf-fft
#
# SPDX-License-Identifier: MIT
#

import argparse

import amaranth.back.verilog

from . import configs
from .fft import FFT


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Generate Verilog for the R2SDF FFT')
    parser.add_argument(
        '--config', default='default',
        help='FFT configuration name [default=%(default)r]')
    parser.add_argument(
        '--name', default='sdf_fft',
        help='Verilog module name [default=%(default)r]')
    parser.add_argument(
        'output_file', help='Output verilog file')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    if not hasattr(configs, args.config):
        raise SystemExit(f'unknown configuration {args.config!r}')
    config = getattr(configs, args.config)()
    fft = FFT.from_config(config)
    with open(args.output_file, 'w') as f:
        f.write(amaranth.back.verilog.convert(
            fft, name=args.name, ports=fft.ports(), emit_src=False))
    print(f'wrote verilog to {args.output_file} '
          f'(size {fft.model_vlen}, width {config.width_in} -> '
          f'{fft.width_out}, delay {fft.delay})')


if __name__ == '__main__':
    main()
