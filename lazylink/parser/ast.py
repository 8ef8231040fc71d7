from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from lazylink.core.span import Span


# ---- annotation / attribute expressions ----


@dataclass(frozen=True)
class PathExpr:
    segments: Tuple[str, ...]
    loc: Span = field(default_factory=Span, compare=False)

    @property
    def ident(self) -> Optional[str]:
        """The bare identifier, or None for a qualified path."""
        if len(self.segments) == 1:
            return self.segments[0]
        return None


@dataclass(frozen=True)
class LitExpr:
    kind: str  # "str" | "int" | "float" | "bool"
    value: object
    raw: str
    loc: Span = field(default_factory=Span, compare=False)


@dataclass(frozen=True)
class AssignExpr:
    left: "Expr"
    right: "Expr"
    loc: Span = field(default_factory=Span, compare=False)


@dataclass(frozen=True)
class CallExpr:
    func: PathExpr
    args: Tuple["Expr", ...]
    loc: Span = field(default_factory=Span, compare=False)


Expr = Union[PathExpr, LitExpr, AssignExpr, CallExpr]


def expr_to_source(expr: Expr) -> str:
    """Canonical source text of an expression (used for attributes and messages)."""
    if isinstance(expr, PathExpr):
        return "::".join(expr.segments)
    if isinstance(expr, LitExpr):
        return expr.raw
    if isinstance(expr, AssignExpr):
        return f"{expr_to_source(expr.left)} = {expr_to_source(expr.right)}"
    if isinstance(expr, CallExpr):
        args = ", ".join(expr_to_source(a) for a in expr.args)
        return f"{expr_to_source(expr.func)}({args})"
    raise TypeError(f"unknown expression node {type(expr).__name__}")


# ---- types ----


@dataclass(frozen=True)
class PathType:
    path: Tuple[str, ...]
    args: Tuple["TypeExpr", ...] = ()
    loc: Span = field(default_factory=Span, compare=False)

    @property
    def name(self) -> str:
        return self.path[-1]


@dataclass(frozen=True)
class PtrType:
    mutable: bool
    inner: "TypeExpr"
    loc: Span = field(default_factory=Span, compare=False)


@dataclass(frozen=True)
class RefType:
    mutable: bool
    inner: "TypeExpr"
    loc: Span = field(default_factory=Span, compare=False)


@dataclass(frozen=True)
class ArrayType:
    inner: "TypeExpr"
    length: int
    loc: Span = field(default_factory=Span, compare=False)


@dataclass(frozen=True)
class UnitType:
    loc: Span = field(default_factory=Span, compare=False)


@dataclass(frozen=True)
class NeverType:
    loc: Span = field(default_factory=Span, compare=False)


@dataclass(frozen=True)
class FnType:
    params: Tuple["TypeExpr", ...]
    ret: Optional["TypeExpr"]
    abi: Optional[str] = None
    unsafe: bool = False
    loc: Span = field(default_factory=Span, compare=False)


TypeExpr = Union[PathType, PtrType, RefType, ArrayType, UnitType, NeverType, FnType]


def type_to_source(ty: TypeExpr) -> str:
    if isinstance(ty, PathType):
        base = "::".join(ty.path)
        if ty.args:
            base += "<" + ", ".join(type_to_source(a) for a in ty.args) + ">"
        return base
    if isinstance(ty, PtrType):
        return f"*{'mut' if ty.mutable else 'const'} {type_to_source(ty.inner)}"
    if isinstance(ty, RefType):
        return f"&{'mut ' if ty.mutable else ''}{type_to_source(ty.inner)}"
    if isinstance(ty, ArrayType):
        return f"[{type_to_source(ty.inner)}; {ty.length}]"
    if isinstance(ty, UnitType):
        return "()"
    if isinstance(ty, NeverType):
        return "!"
    if isinstance(ty, FnType):
        prefix = "unsafe " if ty.unsafe else ""
        if ty.abi is not None:
            prefix += f'extern "{ty.abi}" '
        params = ", ".join(type_to_source(p) for p in ty.params)
        ret = f" -> {type_to_source(ty.ret)}" if ty.ret is not None else ""
        return f"{prefix}fn({params}){ret}"
    raise TypeError(f"unknown type node {type(ty).__name__}")


# ---- declarations ----


@dataclass
class Attribute:
    expr: Expr
    loc: Span

    @property
    def text(self) -> str:
        return expr_to_source(self.expr)

    @property
    def head(self) -> Optional[str]:
        """Leading identifier of the attribute (`doc` for `doc = "..."`)."""
        target = self.expr
        if isinstance(target, AssignExpr):
            target = target.left
        if isinstance(target, CallExpr):
            target = target.func
        if isinstance(target, PathExpr):
            return target.ident
        return None


@dataclass
class Visibility:
    text: str
    loc: Span


@dataclass
class NamedParam:
    name: Optional[str]  # None for the `_` wildcard pattern
    type_expr: TypeExpr
    loc: Span
    mutable: bool = False


@dataclass
class ReceiverParam:
    text: str
    loc: Span


Param = Union[NamedParam, ReceiverParam]


@dataclass
class FnDecl:
    name: str
    params: List[Param]
    ret: Optional[TypeExpr]
    loc: Span
    name_loc: Span
    attributes: List[Attribute] = field(default_factory=list)
    visibility: Optional[Visibility] = None
    terminated: bool = True


@dataclass
class StaticDecl:
    name: str
    type_expr: TypeExpr
    loc: Span
    mutable: bool = False
    attributes: List[Attribute] = field(default_factory=list)
    visibility: Optional[Visibility] = None


@dataclass
class OpaqueTypeDecl:
    name: str
    loc: Span
    attributes: List[Attribute] = field(default_factory=list)
    visibility: Optional[Visibility] = None


BlockItem = Union[FnDecl, StaticDecl, OpaqueTypeDecl]


@dataclass
class ExternBlock:
    abi: Optional[str]
    items: List[BlockItem]
    loc: Span
    extern_loc: Span
    attributes: List[Attribute] = field(default_factory=list)


@dataclass
class TypeAlias:
    name: str
    type_expr: TypeExpr
    loc: Span


@dataclass
class LinkFile:
    blocks: List[ExternBlock] = field(default_factory=list)
    aliases: List[TypeAlias] = field(default_factory=list)
