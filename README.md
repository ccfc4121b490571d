# rvsim

A compact teaching toolkit for a subset of 32-bit RISC-V:

* an **assembler** that turns assembly text into 32-character binary
  instruction words,
* a **five-stage pipeline simulator** (fetch, decode, execute, memory,
  write-back) that runs the assembled words, stalling decode while a
  source register still awaits write-back, and reports the cycle count,
  the instruction count, the register file and the data memory,
* three **cache simulators** (direct-mapped, fully associative and
  set-associative) that replay a list of addresses, print the cache and
  memory contents after every request and count hits and misses, plus a
  quiet set-associative hit/miss counter for long request streams.

No third-party libraries are needed.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Supported instructions

| Format | Mnemonics |
| --- | --- |
| R | `ADD SUB MUL DIV REM AND OR XOR SLL SRL SRA SLT SLTU` |
| I | `ADDI XORI ORI ANDI SLTI` |
| Shift immediate | `SLLI SRLI SRAI` |
| Jump register | `JALR rd, imm(rs1)` |
| Load | `LW LD LH LB LWU LHU LBU` (`rd, imm(rs1)`) |
| Store | `SW SB SH SD` (`rs2, imm(rs1)`) |
| Branch | `BEQ BNE BLT BGE BLTU BGEU` (`rs1, rs2, offset`) |
| Jump | `JAL rd, offset` |
| Upper immediate | `LUI rd, imm` |

Mnemonics are case-insensitive. Registers may be written as `x0`–`x31`
or by their ABI names (`zero`, `ra`, `sp`, `gp`, `tp`, `t0`–`t6`,
`s0`/`fp`, `s1`–`s11`, `a0`–`a7`). Operands are separated by spaces,
commas or parentheses, so both `LW x5, 8(x2)` and `LW x5 8 x2` work.
Immediates are decimal. They are range-checked per format: −2048 to 2047
for I, load, store, branch and JALR; 0 to 31 for shift amounts;
−1048576 to 1048574 for JAL and LUI. An unknown mnemonic, a bad
register, a malformed or out-of-range immediate, or trailing text raises
`rvsim.text.AssemblyError` (a `ValueError`) with a short message.

Example program:

```
ADDI x1, x0, 5
ADDI x2, x0, 7
ADD  x3, x1, x2
SW   x3, 0(x0)
LW   x4, 0(x0)
```

## Command-line tools

`rvsim` assembles a program (by default `assemblyCode.s` in the current
directory), prints each encoded instruction, then runs it through the
pipeline and prints the number of cycles, the number of instructions
executed, the register values and the data memory:

```
rvsim
rvsim program.s
rvsim program.s -o binaryCode.txt
```

`-o/--output` also writes the encoded words to a file, one per line. On
an unreadable file or an assembly error the message goes to standard
error and the exit status is 1.

The cache simulators replay a request stream, printing the cache (and
memory) contents after every request and finishing with the hit and miss
counts:

```
rvsim-direct-mapped
rvsim-associative
rvsim-set-associative
```

Without arguments each uses a built-in demonstration stream. All three
accept `--word-size`, `--block-size`, `--cache-size`, `--memory-size`
(defaults 4, 16, 64 and 256) and `--seed` for the random memory contents.
`rvsim-direct-mapped` and `rvsim-associative` take addresses as
positional arguments (`rvsim-direct-mapped 36 37 128`);
`rvsim-set-associative` takes `ADDRESS[:r|w]` requests (reads by
default) and a `--ways` option (default 2):

```
rvsim-set-associative 36 38:w 128:r --ways 2 --seed 1
```

In the set-associative simulator a write marks the block with `1 1 1 1`
in the cache (on a hit) and writes through to memory.

## Using it as a library

```python
from rvsim.instruction import assemble
from rvsim.pipeline import Pipeline

binary = assemble(["ADDI x1, x0, 5", "ADDI x2, x1, 3"])
pipeline = Pipeline(binary)
cycles = pipeline.run()
print(cycles)
print(pipeline.report())
```

`rvsim.instruction.assemble_line` encodes a single line;
`rvsim.text.read_program` and `rvsim.text.write_binary` read assembly
files and write encoded words. After `run()`, a `Pipeline` exposes
`registers` (keyed by five-bit register number), `data_memory` (keyed by
word index) and `instruction_count`.

The cache models live in `rvsim.direct_mapped`, `rvsim.associative`,
`rvsim.set_associative` and `rvsim.hit_miss`. Each offers a `Cache` and
a `Processor` whose `step()` serves one request and whose `run()` serves
the rest and returns `(hits, misses)`; the counts are also kept in
`hits` and `misses`. Pass a `random.Random` as `rng` to make memory
contents and replacement choices reproducible, and a text stream as
`out` (where accepted) to capture the log.

```python
import io
import random
from rvsim.direct_mapped import Processor

log = io.StringIO()
processor = Processor(4, 16, 64, 256, [36, 37, 38, 128, 192, 193],
                      rng=random.Random(0), out=log)
print(processor.run())
```

## Limitations

* The pipeline has no forwarding; it stalls instead.
* Only the operations the pipeline's ALU knows are executed. `SLT` and
  `SLTI` yield 1 when the first operand is *greater* than the second;
  `SLTU`, `SLLI`, `SRLI` and `SRAI` produce 0; `BLTU` and `BGEU` are
  always taken; `LUI` assembles but has no effect when run.
* Memory accesses are word-granular (address divided by 4); load and
  store widths are encoded but not distinguished.
* There are no labels, directives or pseudo-instructions; branch and
  jump offsets are written as numbers.
* The quiet counter in `rvsim.hit_miss` has no command of its own.