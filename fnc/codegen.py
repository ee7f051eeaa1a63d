"""Code generator — AST to x86-64 NASM assembly text.

Expressions use a stack-machine discipline: every value is produced in the
accumulator (``rax``); a binary operation pushes its left operand while the
right one is computed, then combines the two with ``rcx`` as scratch.
"""

from __future__ import annotations

import logging
import math
import struct
from dataclasses import dataclass, field
from typing import Callable

from .ast import (
    Assignment,
    BinaryOp,
    BinaryOperator,
    Expression,
    Function,
    Identifier,
    Literal,
    LiteralKind,
    Node,
    Parameter,
    VarDecl,
    children,
)
from .compile_types import CodeGenConfig
from .errors import CodeGenError
from .tokens import TokenKind, keyword_spelling
from . import constants

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Storage:
    """Width-specific spellings for one declared type."""

    width: int
    directive: str
    size: str
    # Instruction that truncates rax to the width in place; empty for full words.
    truncate: str = ""


_WORD_STORAGE = Storage(width=8, directive="dq", size="qword")

_STORAGE: dict[TokenKind | None, Storage] = {
    TokenKind.U8: Storage(width=1, directive="db", size="byte", truncate="movzx eax, al"),
    TokenKind.U16: Storage(width=2, directive="dw", size="word", truncate="movzx eax, ax"),
    TokenKind.U32: Storage(width=4, directive="dd", size="dword", truncate="mov eax, eax"),
    TokenKind.U64: _WORD_STORAGE,
    TokenKind.INT: _WORD_STORAGE,
    TokenKind.FLOAT: _WORD_STORAGE,
    None: _WORD_STORAGE,
}

_SUB_REGISTER: dict[int, str] = {1: "al", 2: "ax", 4: "eax", 8: "rax"}


def storage_for(type_keyword: TokenKind | None) -> Storage:
    """Return the storage layout for a declared type (``None`` means untyped)."""
    storage = _STORAGE.get(type_keyword)
    if storage is None:
        raise CodeGenError(f"Unsupported storage type: {type_keyword}")
    return storage


@dataclass(frozen=True)
class ParamSlot:
    offset: int
    parameter: Parameter


@dataclass(frozen=True)
class GenContext:
    """What the traversal needs to resolve names at the current point."""

    globals: dict[str, TokenKind | None]
    function: str = ""
    params: dict[str, ParamSlot] = field(default_factory=dict)

    def for_function(self, func: Function) -> GenContext:
        slots: dict[str, ParamSlot] = {}
        for i, param in enumerate(func.parameters):
            if param.name in slots:
                raise CodeGenError(
                    f"Duplicate parameter '{param.name}' in function '{func.name}'",
                    param.location,
                )
            slots[param.name] = ParamSlot(
                offset=constants.WORD_SIZE * (i + 1), parameter=param
            )
        return GenContext(globals=self.globals, function=func.name, params=slots)


def collect_globals(nodes: list[Node]) -> dict[str, TokenKind | None]:
    """Map each top-level variable name to its declared type.

    Declarations fix the type; bare top-level assignments add an untyped
    word-sized global only when no declaration exists. Function bodies are not
    searched.
    """
    declared: dict[str, TokenKind | None] = {}
    for node in nodes:
        if not isinstance(node, VarDecl):
            continue
        storage_for(node.type_keyword)
        previous = declared.get(node.identifier, node.type_keyword)
        if previous != node.type_keyword:
            raise CodeGenError(
                f"Conflicting declarations for '{node.identifier}':"
                f" {keyword_spelling(previous)} and {keyword_spelling(node.type_keyword)}",
                node.location,
            )
        declared[node.identifier] = node.type_keyword
    for node in nodes:
        if isinstance(node, Assignment):
            declared.setdefault(node.identifier, None)
    return declared


def _operators_used(nodes: list[Node]) -> set[BinaryOperator]:
    used: set[BinaryOperator] = set()
    pending: list[Node] = list(nodes)
    while pending:
        node = pending.pop()
        if isinstance(node, BinaryOp):
            used.add(node.op)
        pending.extend(children(node))
    return used


class CodeGenerator:
    """Emits one assembly buffer per ``generate`` call.

    Output layout: a ``.data`` section with one zeroed entry per global
    (sorted by name), then ``.text`` with the entry point, one block per
    function in source order, and the runtime helpers the program needs.
    """

    def __init__(self, config: CodeGenConfig = CodeGenConfig()):
        self._config = config
        self._lines: list[str] = []
        self._EXPR_DISPATCH: dict[type, Callable[[Expression, GenContext], None]] = {
            Literal: self._gen_literal,
            Identifier: self._gen_identifier,
            BinaryOp: self._gen_binary,
        }

    # ── helpers ──────────────────────────────────────────────────

    def _emit(self, instruction: str):
        self._lines.append(f"{constants.INDENT}{instruction}")

    def _label(self, name: str):
        self._lines.append(f"{name}:")

    @staticmethod
    def _symbol(name: str) -> str:
        # NASM reads a $-prefixed word as an identifier even when it spells a
        # mnemonic or register (`$add`, `$rax`).
        return f"{constants.SYMBOL_PREFIX}{name}"

    def _blank(self):
        self._lines.append("")

    def _annotate(self, node: Node):
        if self._config.annotate:
            self._emit(f"; {node.location}: {node}")

    # ── entry point ──────────────────────────────────────────────

    def generate(self, nodes: list[Node]) -> str:
        self._lines = []
        globals_ = collect_globals(nodes)
        functions = [node for node in nodes if isinstance(node, Function)]
        self._check_symbols(globals_, functions)
        context = GenContext(globals=globals_)
        operators = _operators_used(nodes)

        self._gen_data_section(globals_)
        self._blank()
        self._lines.append("section .text")
        self._lines.append(f"global {self._config.entry_label}")
        self._blank()
        self._gen_entry(nodes, functions, context)
        for func in functions:
            self._blank()
            self._gen_function(func, context)
        if BinaryOperator.DIV in operators:
            self._blank()
            self._gen_div_zero_handler()
        if BinaryOperator.POW in operators:
            self._blank()
            self._gen_pow_routine()

        output = "\n".join(self._lines) + "\n"
        logger.info(
            "Generated %d lines of assembly (%d globals, %d functions)",
            len(self._lines),
            len(globals_),
            len(functions),
        )
        return output

    def _check_symbols(
        self, globals_: dict[str, TokenKind | None], functions: list[Function]
    ):
        reserved = {
            self._config.entry_label,
            constants.DIV_ZERO_LABEL,
            constants.POW_LABEL,
        }
        for name in globals_:
            if name in reserved:
                raise CodeGenError(f"Global name '{name}' is reserved")
        seen: set[str] = set()
        for func in functions:
            if func.name in reserved:
                raise CodeGenError(f"Function name '{func.name}' is reserved", func.location)
            if func.name in seen:
                raise CodeGenError(f"Duplicate function '{func.name}'", func.location)
            if func.name in globals_:
                raise CodeGenError(
                    f"'{func.name}' is defined as both a function and a global",
                    func.location,
                )
            seen.add(func.name)

    # ── sections ─────────────────────────────────────────────────

    def _gen_data_section(self, globals_: dict[str, TokenKind | None]):
        self._lines.append("section .data")
        for name in sorted(globals_):
            storage = storage_for(globals_[name])
            self._lines.append(f"{self._symbol(name)}: {storage.directive} 0")

    def _gen_entry(self, nodes: list[Node], functions: list[Function], context: GenContext):
        self._label(self._config.entry_label)
        if any(func.name == constants.MAIN_FUNCTION_NAME for func in functions):
            self._emit(f"call {self._symbol(constants.MAIN_FUNCTION_NAME)}")
        else:
            for node in nodes:
                if isinstance(node, Function):
                    continue
                self._annotate(node)
                self._gen_top_level(node, context)
        self._emit(f"mov rax, {constants.SYS_EXIT}")
        self._emit("xor rdi, rdi")
        self._emit("syscall")

    def _gen_top_level(self, node: Node, context: GenContext):
        if isinstance(node, VarDecl):
            if node.initializer is not None:
                self._gen_expr(node.initializer, context)
                self._store_global(node.identifier, context)
        elif isinstance(node, Assignment):
            self._gen_assignment(node, context)
        else:
            self._gen_expr(node, context)

    # ── functions ────────────────────────────────────────────────

    def _gen_function(self, func: Function, context: GenContext):
        fn_context = context.for_function(func)
        logger.debug("Generating function %s (%d params)", func.name, len(func.parameters))
        self._annotate(func)
        self._lines.append(f"global {self._symbol(func.name)}")
        self._label(self._symbol(func.name))
        self._emit("push rbp")
        self._emit("mov rbp, rsp")

        frame = constants.WORD_SIZE * len(func.parameters)
        frame += -frame % constants.STACK_ALIGNMENT
        if frame:
            self._emit(f"sub rsp, {frame}")

        for i, param in enumerate(func.parameters):
            self._bind_parameter(i, fn_context.params[param.name])

        for stmt in func.body:
            if isinstance(stmt, Assignment):
                self._gen_assignment(stmt, fn_context)
            elif isinstance(stmt, (VarDecl, Function)):
                raise CodeGenError(
                    f"Unexpected {type(stmt).__name__} in body of '{func.name}'",
                    stmt.location,
                )
            else:
                self._gen_expr(stmt, fn_context)

        if not func.body or isinstance(func.body[-1], Assignment):
            self._emit("xor eax, eax")
        self._emit("mov rsp, rbp")
        self._emit("pop rbp")
        self._emit("ret")

    def _bind_parameter(self, index: int, slot: ParamSlot):
        storage = storage_for(slot.parameter.type_keyword)
        registers = constants.PARAM_REGISTERS
        if index < len(registers) and not storage.truncate:
            self._emit(f"mov [rbp - {slot.offset}], {registers[index]}")
            return
        if index < len(registers):
            self._emit(f"mov rax, {registers[index]}")
        else:
            caller_offset = constants.STACK_PARAM_BASE_OFFSET + constants.WORD_SIZE * (
                index - len(registers)
            )
            self._emit(f"mov rax, [rbp + {caller_offset}]")
        if storage.truncate:
            self._emit(storage.truncate)
        self._emit(f"mov [rbp - {slot.offset}], rax")

    # ── statements ───────────────────────────────────────────────

    def _gen_assignment(self, node: Assignment, context: GenContext):
        slot = context.params.get(node.identifier)
        if slot is not None and slot.parameter.is_const:
            raise CodeGenError(
                f"Cannot assign to const parameter '{node.identifier}'"
                f" in function '{context.function}'",
                node.location,
            )
        self._gen_expr(node.value, context)
        if slot is not None:
            truncate = storage_for(slot.parameter.type_keyword).truncate
            if truncate:
                self._emit(truncate)
            self._emit(f"mov [rbp - {slot.offset}], rax")
            return
        if node.identifier not in context.globals:
            raise CodeGenError(
                f"Assignment to undefined identifier '{node.identifier}'", node.location
            )
        self._store_global(node.identifier, context)

    def _store_global(self, name: str, context: GenContext):
        storage = storage_for(context.globals[name])
        self._emit(
            f"mov {storage.size} [{self._symbol(name)}], {_SUB_REGISTER[storage.width]}"
        )

    # ── expressions → accumulator ────────────────────────────────

    def _gen_expr(self, node: Expression, context: GenContext):
        handler = self._EXPR_DISPATCH.get(type(node))
        if handler is None:
            raise CodeGenError(f"Unsupported AST node: {type(node).__name__}")
        handler(node, context)

    def _gen_literal(self, node: Literal, context: GenContext):
        if node.kind == LiteralKind.FLOAT:
            (bits,) = struct.unpack("<Q", struct.pack("<d", node.value))
            self._emit(f"mov rax, 0x{bits:016X}")
            return
        value = node.value
        if isinstance(value, float):
            if not math.isfinite(value):
                raise CodeGenError(f"Literal {node.text} is not finite", node.location)
            value = math.trunc(value)
        if not constants.SIGNED_64_MIN <= value <= constants.UNSIGNED_64_MAX:
            raise CodeGenError(f"Literal {node.text} does not fit in 64 bits", node.location)
        self._emit(f"mov rax, {value}")

    def _gen_identifier(self, node: Identifier, context: GenContext):
        slot = context.params.get(node.name)
        if slot is not None:
            self._emit(f"mov rax, [rbp - {slot.offset}]")
            return
        if node.name not in context.globals:
            raise CodeGenError(f"Undefined identifier '{node.name}'", node.location)
        storage = storage_for(context.globals[node.name])
        symbol = self._symbol(node.name)
        if storage.width == 8:
            self._emit(f"mov rax, qword [{symbol}]")
        elif storage.width == 4:
            # Writing eax clears the upper half of rax.
            self._emit(f"mov eax, dword [{symbol}]")
        else:
            self._emit(f"movzx eax, {storage.size} [{symbol}]")

    def _gen_binary(self, node: BinaryOp, context: GenContext):
        self._gen_expr(node.left, context)
        self._emit("push rax")
        self._gen_expr(node.right, context)
        self._emit(f"mov {constants.SCRATCH}, rax")
        self._emit("pop rax")
        if node.op == BinaryOperator.ADD:
            self._emit("add rax, rcx")
        elif node.op == BinaryOperator.SUB:
            self._emit("sub rax, rcx")
        elif node.op == BinaryOperator.MUL:
            self._emit("imul rax, rcx")
        elif node.op == BinaryOperator.DIV:
            self._emit("test rcx, rcx")
            self._emit(f"jz {constants.DIV_ZERO_LABEL}")
            self._emit("cqo")
            self._emit("idiv rcx")
        elif node.op == BinaryOperator.POW:
            self._emit(f"call {constants.POW_LABEL}")
        else:
            raise CodeGenError(f"Unsupported operator: {node.op}", node.location)

    # ── runtime helpers ──────────────────────────────────────────

    def _gen_div_zero_handler(self):
        self._label(constants.DIV_ZERO_LABEL)
        self._emit(f"mov rax, {constants.SYS_EXIT}")
        self._emit(f"mov rdi, {constants.DIV_ZERO_EXIT_STATUS}")
        self._emit("syscall")

    def _gen_pow_routine(self):
        """rax = rax ^ rcx; zero exponent gives 1, negative exponents give 0."""
        self._label(constants.POW_LABEL)
        self._emit("mov rdx, rax")
        self._emit("mov rax, 1")
        self._emit("test rcx, rcx")
        self._emit("jns .loop")
        self._emit("xor eax, eax")
        self._emit("ret")
        self._label(".loop")
        self._emit("test rcx, rcx")
        self._emit("jz .done")
        self._emit("imul rax, rdx")
        self._emit("dec rcx")
        self._emit("jmp .loop")
        self._label(".done")
        self._emit("ret")


def generate(nodes: list[Node], config: CodeGenConfig = CodeGenConfig()) -> str:
    return CodeGenerator(config).generate(nodes)
