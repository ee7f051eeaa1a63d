"""Named constants — eliminates magic strings across the codebase."""

from __future__ import annotations

ENTRY_LABEL = "_start"
MAIN_FUNCTION_NAME = "main"

ACCUMULATOR = "rax"
SCRATCH = "rcx"

PARAM_REGISTERS: tuple[str, ...] = ("rdi", "rsi", "rdx", "rcx", "r8", "r9")

WORD_SIZE = 8
STACK_ALIGNMENT = 16
# Saved rbp plus return address sit between rbp and the first stack argument.
STACK_PARAM_BASE_OFFSET = 16

SYS_EXIT = 60
EXIT_SUCCESS = 0
# Matches the status a shell reports for a process killed by SIGFPE.
DIV_ZERO_EXIT_STATUS = 136

DIV_ZERO_LABEL = "__fnc_div_zero"
POW_LABEL = "__fnc_ipow"

INDENT = "    "

EMPTY_PROGRAM_MESSAGE = "Empty program: expected at least one function or expression"
MULTIPLE_DECIMAL_POINTS_MESSAGE = "Multiple decimal points"
INVALID_NUMBER_MESSAGE = "Invalid number format: "

SIGNED_64_MIN = -(2**63)
SIGNED_64_MAX = 2**63 - 1
UNSIGNED_64_MAX = 2**64 - 1

# Prefix on every user-defined symbol in the emitted assembly.
SYMBOL_PREFIX = "$"
