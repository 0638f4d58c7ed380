#
# Copyright (C) 2024 The sdf-fft developers
#
# This file is part of sdf-fft
#
# SPDX-License-Identifier: MIT
#

from amaranth import *
from amaranth.lib.memory import Memory
from amaranth.utils import exact_log2
import numpy as np


class DelayLine(Elaboratable):
    """Fixed-depth delay line

    The word presented at ``data_in`` in a clock cycle in which ``clken`` is
    asserted appears at ``data_out`` ``depth`` clock-enabled cycles later. All
    depths, including 1, use the same interface. The contents are not cleared
    by reset.

    Parameters
    ----------
    depth : int
        Delay in samples.
    width : int
        Width of the words stored.
    storage : str
        Selects the storage mode. There are three possible storage modes:
        * ``'distributed'`` uses a chain of registers (flip-flops or LUTMs
          depending on synthesis)
        * ``'bram'`` uses a BRAM with 1 clock cycle of read latency. The
          depth must be a power of two larger than one.
        * ``'auto'`` chooses 'distributed' or 'bram' depending on ``depth``.

    Attributes
    ----------
    delay : int
        Delay (in samples) introduced by this module.
    clken : Signal(), in
        Clock enable.
    bram_raddr : Signal(log2(depth)), in
        Only present for ``'bram'`` storage mode (even when selected with
        ``'auto'``). Read address. Its value must equal ``bram_waddr + 1``
        modulo ``depth``.
    bram_waddr : Signal(log2(depth)), in
        Only present for ``'bram'`` storage mode (even when selected with
        ``'auto'``). Write address. This should be a counter that advances
        on each clock-enabled cycle.
    data_in : Signal(width), in
        Input word.
    data_out : Signal(width), out
        Output word.
    """
    def __init__(self, depth, width, storage='auto'):
        if depth < 1:
            raise ValueError(f'invalid delay line depth {depth}')
        if storage not in ['auto', 'distributed', 'bram']:
            raise ValueError(
                f'invalid storage class for DelayLine: {storage}')
        self.depth = depth
        self.width = width
        self.storage = (
            storage if storage != 'auto' else self.auto_storage_rule())
        if self.storage == 'bram':
            if depth < 2 or depth & (depth - 1):
                raise ValueError(
                    f'depth {depth} cannot be implemented with BRAM')
            self.addr_width = exact_log2(depth)

        self.clken = Signal()
        if self.storage == 'bram':
            self.bram_raddr = Signal(self.addr_width)
            self.bram_waddr = Signal(self.addr_width)
        self.data_in = Signal(self.width)
        self.data_out = Signal(self.width)

    @property
    def delay(self):
        return self.depth

    def auto_storage_rule(self):
        return 'bram' if self.depth >= 256 else 'distributed'

    def model(self, x):
        x = np.asarray(x, 'int')
        return np.concatenate(
            (np.zeros(self.depth, 'int'), x))[:x.size]

    def elaborate(self, platform):
        m = Module()

        if self.storage == 'distributed':
            regs = [Signal(self.width, name=f'reg{j}', reset_less=True)
                    for j in range(self.depth)]
            with m.If(self.clken):
                m.d.sync += regs[0].eq(self.data_in)
                m.d.sync += [regs[j].eq(regs[j - 1])
                             for j in range(1, self.depth)]
            m.d.comb += self.data_out.eq(regs[-1])
        else:
            m.submodules.mem = mem = Memory(
                shape=self.width, depth=self.depth, init=[],
                attrs={'ram_style': 'block'})
            rdport = mem.read_port()
            wrport = mem.write_port()
            m.d.comb += [
                rdport.en.eq(self.clken),
                wrport.en.eq(self.clken),
                rdport.addr.eq(self.bram_raddr),
                wrport.addr.eq(self.bram_waddr),
                wrport.data.eq(self.data_in),
                self.data_out.eq(rdport.data),
            ]

        return m
