#
# Copyright (C) 2024 The sdf-fft developers
#
# This file is part of sdf-fft
#
# SPDX-License-Identifier: MIT
#

from amaranth import *
from amaranth.lib.memory import Memory
import numpy as np


class TwiddleTable(Elaboratable):
    """Twiddle factor table

    Read-only table giving the twiddle factors of one R2SDF stage. The
    twiddle factor for ``quadrant = 1`` and a given ``index`` is
    ``exp(-1j*theta) = cos(theta) - 1j*sin(theta)``, where
    ``theta = 2*pi*index/2**(index_width+1)``. For ``quadrant = 0`` the
    twiddle factor is 1.

    Only a quarter of a period is stored. Angles in ``[pi/2, pi)`` are
    obtained by reflection: ``cos(theta) = -cos(pi - theta)`` and
    ``sin(theta) = sin(pi - theta)``.

    Parameters
    ----------
    index_width : int
        Width of the angle index.
    twiddle_width : int
        Width of the twiddle factors. The factors are scaled by
        ``2**(twiddle_width-2)``, so that 1 is representable. The
        magnitude of the stored factors never exceeds 1.
    storage : str
        Storage mode for the quarter-period table. There are three possible
        storage modes:
            * ``'lut'`` uses combinational LUTs
            * ``'bram'`` uses BRAMs with 1 clock cycle of latency
            * ``'auto'`` chooses 'lut' or 'bram' depending on the table size

    Attributes
    ----------
    index_advance : int
        Number of cycles by which ``quadrant`` and ``index`` must be presented
        in advance of the cycle in which the twiddle factor is used.
    clken : Signal(), in
        Clock enable.
    quadrant : Signal(), in
        Selects between the unit twiddle (when low) and the rotating half of
        the twiddle sequence (when high).
    index : Signal(index_width), in
        Angle index.
    cos : Signal(signed(twiddle_width)), out
        Real part of the twiddle factor.
    sin : Signal(signed(twiddle_width)), out
        Minus the imaginary part of the twiddle factor.
    """
    def __init__(self, index_width, twiddle_width, storage='auto'):
        if index_width < 1:
            raise ValueError(f'invalid twiddle index width {index_width}')
        if twiddle_width < 3:
            raise ValueError(f'invalid twiddle width {twiddle_width}')
        if storage not in ['auto', 'bram', 'lut']:
            raise ValueError(
                f'invalid storage class for TwiddleTable: {storage}')
        self.m = index_width
        self.tw = twiddle_width
        self.storage = (
            storage if storage != 'auto' else self.auto_storage_rule())

        self.clken = Signal()
        self.quadrant = Signal()
        self.index = Signal(self.m)
        self.cos = Signal(signed(self.tw))
        self.sin = Signal(signed(self.tw))

    @property
    def index_advance(self):
        return 1 if self.storage == 'bram' else 0

    @property
    def scale(self):
        return 1 << (self.tw - 2)

    @property
    def period(self):
        return 2**(self.m + 1)

    def auto_storage_rule(self):
        return 'bram' if 2**(self.m - 1) + 1 >= 2**8 else 'lut'

    def quarter_wave(self):
        """Returns the stored (cos, sin) pairs for angles in [0, pi/2]

        The coefficients are rounded to nearest. Pairs whose magnitude
        exceeds ``scale`` after rounding are pulled back inside the unit
        circle by decrementing the component that was rounded up the most,
        so that rotations never increase the amplitude of a sample.
        """
        theta = np.pi * np.arange(2**(self.m - 1) + 1) / 2**self.m
        exact_cos = self.scale * np.cos(theta)
        exact_sin = self.scale * np.sin(theta)
        cos, sin = [], []
        for ec, es in zip(exact_cos, exact_sin):
            c, s = int(np.round(ec)), int(np.round(es))
            while c**2 + s**2 > self.scale**2:
                if c - ec >= s - es:
                    c -= 1
                else:
                    s -= 1
            cos.append(c)
            sin.append(s)
        return cos, sin

    def model(self, quadrant, index):
        if not quadrant:
            return self.scale, 0
        cos, sin = self.quarter_wave()
        half = 2**(self.m - 1)
        if index < half:
            return cos[index], sin[index]
        k = 2**self.m - index
        return -cos[k], sin[k]

    def coefficients(self):
        """Returns the (cos, sin) lists over a full period of addresses

        The address is ``(quadrant << index_width) | index``.
        """
        pairs = [self.model(a >> self.m, a & (2**self.m - 1))
                 for a in range(self.period)]
        return [p[0] for p in pairs], [p[1] for p in pairs]

    def elaborate(self, platform):
        m = Module()

        cos, sin = self.quarter_wave()
        mask = 2**self.tw - 1
        packed = [((c & mask) << self.tw) | (s & mask)
                  for c, s in zip(cos, sin)]
        m.submodules.table = table = Memory(
            shape=2*self.tw, depth=len(packed), init=packed,
            attrs={'ram_style': ('distributed' if self.storage == 'lut'
                                 else 'block')})

        reflect = self.index[-1]
        address = Signal(self.m)
        m.d.comb += address.eq(
            Mux(reflect, 2**self.m - self.index, self.index))

        if self.storage == 'lut':
            rdport = table.read_port(domain='comb')
            reflect_q = reflect
            quadrant_q = self.quadrant
        else:
            rdport = table.read_port(domain='sync')
            reflect_q = Signal(reset_less=True)
            quadrant_q = Signal(reset_less=True)
            m.d.comb += rdport.en.eq(self.clken)
            with m.If(self.clken):
                m.d.sync += [
                    reflect_q.eq(reflect),
                    quadrant_q.eq(self.quadrant),
                ]
        m.d.comb += rdport.addr.eq(address)

        cos_q = rdport.data[self.tw:].as_signed()
        sin_q = rdport.data[:self.tw].as_signed()
        m.d.comb += [
            self.cos.eq(Mux(quadrant_q,
                            Mux(reflect_q, -cos_q, cos_q),
                            self.scale)),
            self.sin.eq(Mux(quadrant_q, sin_q, 0)),
        ]

        return m
