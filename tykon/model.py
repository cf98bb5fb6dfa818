"""Tykon declaration model.

This module defines the declaration tree consumed by the backend. The
frontend produces it from TypeScript source; tests build it by hand.

Architecture:
    Source -> Frontend (tree-sitter) -> [model] -> Middleend (name index) -> Backend -> Kotlin

Type expressions are immutable and hashable. Declarations and containers are
plain mutable records filled in by the frontend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal as Lit


# ============================================================
# DOCUMENTATION
# ============================================================


@dataclass
class DocTag:
    """One `@name text` entry of a documentation block."""

    name: str
    text: str = ""


@dataclass
class Doc:
    """One `/** ... */` block: free description followed by tags."""

    description: str = ""
    tags: list[DocTag] = field(default_factory=list)


# ============================================================
# TYPE EXPRESSIONS
#
# Every variant carries the source text it was parsed from. Hand-built
# values leave `text` empty and render a canonical form via `source`.
# ============================================================


@dataclass(unsafe_hash=True)
class TypeExpr:
    """Base for all type expressions. Abstract."""

    @property
    def source(self) -> str:
        text = getattr(self, "text", "")
        if text:
            return text
        return type_to_source(self)


PrimitiveName = Lit[
    "string",
    "number",
    "boolean",
    "bigint",
    "symbol",
    "any",
    "unknown",
    "object",
    "void",
    "undefined",
    "null",
    "never",
    "this",
]


@dataclass(unsafe_hash=True)
class Primitive(TypeExpr):
    """Keyword types.

    | Name      | Kotlin  |
    |-----------|---------|
    | string    | String  |
    | number    | Double  |
    | boolean   | Boolean |
    | bigint    | Long    |
    | any       | Any     |
    | void      | Unit    |
    | never     | Nothing |
    | this      | (dropped as a generic argument) |
    """

    name: PrimitiveName
    text: str = field(default="", compare=False)


@dataclass(unsafe_hash=True)
class Named(TypeExpr):
    """Reference to a declared type, possibly qualified: `Foo`, `ns.Foo`."""

    name: str
    text: str = field(default="", compare=False)


@dataclass(unsafe_hash=True)
class Generic(TypeExpr):
    """Instantiated generic: `Base<A, B>`."""

    base: str
    args: tuple[TypeExpr, ...]
    text: str = field(default="", compare=False)


@dataclass(unsafe_hash=True)
class ArrayType(TypeExpr):
    """Trailing-bracket array: `T[]`. Nested once per bracket pair."""

    element: TypeExpr
    text: str = field(default="", compare=False)


@dataclass(unsafe_hash=True)
class Tuple(TypeExpr):
    """Fixed-arity tuple: `[A, B]`."""

    elements: tuple[TypeExpr, ...]
    text: str = field(default="", compare=False)


@dataclass(unsafe_hash=True)
class Parameter:
    """Function, method or constructor parameter.

    Invariants:
    - rest parameters are last
    - a parameter named `this` types the receiver and is never emitted
    """

    name: str
    type: TypeExpr | None = None
    optional: bool = False
    rest: bool = False


@dataclass(unsafe_hash=True)
class FunctionType(TypeExpr):
    """Function shape: `(a: A, b?: B) => R`."""

    params: tuple[Parameter, ...]
    ret: TypeExpr
    text: str = field(default="", compare=False)


@dataclass(unsafe_hash=True)
class Union(TypeExpr):
    """`A | B | ...`, flattened."""

    members: tuple[TypeExpr, ...]
    text: str = field(default="", compare=False)


@dataclass(unsafe_hash=True)
class Intersection(TypeExpr):
    """`A & B & ...`, flattened."""

    members: tuple[TypeExpr, ...]
    text: str = field(default="", compare=False)


@dataclass(unsafe_hash=True)
class Conditional(TypeExpr):
    """`Check extends Extends ? WhenTrue : WhenFalse`."""

    check: TypeExpr
    extends: TypeExpr
    when_true: TypeExpr
    when_false: TypeExpr
    text: str = field(default="", compare=False)


@dataclass(unsafe_hash=True)
class Literal(TypeExpr):
    """Literal type. `value` holds the bare value (quotes stripped).

    | Kind     | Example  | Kotlin  |
    |----------|----------|---------|
    | string   | "a"      | String  |
    | number   | 42       | Double  |
    | boolean  | true     | Boolean |
    | template | `a${B}`  | String  |
    """

    kind: Lit["string", "number", "boolean", "template"]
    value: str
    text: str = field(default="", compare=False)


@dataclass(unsafe_hash=True)
class ObjectShape(TypeExpr):
    """Inline object literal type: `{ a: string; f(): void }`."""

    properties: tuple[Property, ...] = field(default=(), compare=False)
    methods: tuple[Method, ...] = field(default=(), compare=False)
    text: str = field(default="", compare=False)


@dataclass(unsafe_hash=True)
class TypeOperator(TypeExpr):
    """Prefix operator applied to a type.

    | Operator | Form         |
    |----------|--------------|
    | keyof    | keyof T      |
    | typeof   | typeof x     |
    | readonly | readonly T[] |
    | new      | new () => T  |
    | unique   | unique symbol|
    """

    operator: Lit["keyof", "typeof", "readonly", "new", "unique"]
    operand: TypeExpr
    text: str = field(default="", compare=False)


@dataclass(unsafe_hash=True)
class IndexedAccess(TypeExpr):
    """Indexed access: `T["key"]`."""

    object: TypeExpr
    index: TypeExpr
    text: str = field(default="", compare=False)


@dataclass(unsafe_hash=True)
class Opaque(TypeExpr):
    """Anything the frontend does not classify (mapped, infer, predicates)."""

    text: str


# ============================================================
# MEMBERS
# ============================================================


@dataclass(unsafe_hash=True)
class TypeParam:
    """Generic parameter: `T extends Constraint = Default`."""

    name: str
    constraint: TypeExpr | None = None
    default: TypeExpr | None = None


@dataclass(eq=False)
class Property:
    """Class or interface property. Getters and setters fold into one."""

    name: str
    type: TypeExpr | None = None
    optional: bool = False
    readonly: bool = False
    static: bool = False
    abstract: bool = False
    docs: list[Doc] = field(default_factory=list)


@dataclass(eq=False)
class Method:
    """Class or interface method signature."""

    name: str
    params: list[Parameter] = field(default_factory=list)
    return_type: TypeExpr | None = None
    type_params: list[TypeParam] = field(default_factory=list)
    optional: bool = False
    static: bool = False
    abstract: bool = False
    docs: list[Doc] = field(default_factory=list)


@dataclass(eq=False)
class Constructor:
    """Class constructor overload."""

    params: list[Parameter] = field(default_factory=list)
    docs: list[Doc] = field(default_factory=list)


# ============================================================
# DECLARATIONS
#
# Compared by identity: two declarations with equal fields in different
# containers are still distinct entries of the name index.
# ============================================================


@dataclass(kw_only=True, eq=False)
class Declaration:
    """Base for top-level declarations. Abstract."""

    name: str
    docs: list[Doc] = field(default_factory=list)
    type_params: list[TypeParam] = field(default_factory=list)
    ambient: bool = True
    exported: bool = False
    lineno: int = 0


@dataclass(kw_only=True, eq=False)
class ClassDecl(Declaration):
    """`declare class` / `declare abstract class`."""

    parent: TypeExpr | None = None
    implements: list[TypeExpr] = field(default_factory=list)
    properties: list[Property] = field(default_factory=list)
    methods: list[Method] = field(default_factory=list)
    constructors: list[Constructor] = field(default_factory=list)
    abstract: bool = False


@dataclass(kw_only=True, eq=False)
class InterfaceDecl(Declaration):
    """`interface`; same-named interfaces merge."""

    extends: list[TypeExpr] = field(default_factory=list)
    properties: list[Property] = field(default_factory=list)
    methods: list[Method] = field(default_factory=list)


@dataclass(kw_only=True, eq=False)
class FunctionDecl(Declaration):
    """`declare function`; one record per overload."""

    params: list[Parameter] = field(default_factory=list)
    return_type: TypeExpr | None = None


@dataclass(kw_only=True, eq=False)
class VariableDecl(Declaration):
    """`declare const|let|var`.

    `local` marks a binding of an ES module that is neither exported nor
    declared: it is not visible to consumers and is never emitted.
    """

    type: TypeExpr | None = None
    readonly: bool = False
    local: bool = False


@dataclass(kw_only=True, eq=False)
class TypeAliasDecl(Declaration):
    """`type Name<T> = ...`."""

    type: TypeExpr


# ============================================================
# CONTAINERS
# ============================================================


ContainerKind = Lit["root", "module", "namespace"]


@dataclass(eq=False)
class Container:
    """Root unit or one named module/namespace.

    | Kind      | Source                 | Kotlin header               |
    |-----------|------------------------|-----------------------------|
    | root      | top level of the file  | @file:JsModule(<module>)    |
    | module    | declare module "x" {}  | @file:JsModule("x")         |
    | namespace | namespace A.B {}       | @file:JsQualifier("A.B")    |
    """

    name: str = ""
    kind: ContainerKind = "root"
    js_module: str | None = None  # enclosing `declare module "x"`, if any
    variables: list[VariableDecl] = field(default_factory=list)
    functions: list[FunctionDecl] = field(default_factory=list)
    classes: list[ClassDecl] = field(default_factory=list)
    interfaces: list[InterfaceDecl] = field(default_factory=list)
    aliases: list[TypeAliasDecl] = field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.kind == "root"

    def add(self, decl: Declaration) -> None:
        """File a declaration under its kind."""
        match decl:
            case VariableDecl():
                self.variables.append(decl)
            case FunctionDecl():
                self.functions.append(decl)
            case ClassDecl():
                self.classes.append(decl)
            case InterfaceDecl():
                self.interfaces.append(decl)
            case TypeAliasDecl():
                self.aliases.append(decl)
            case _:
                raise TypeError("unknown declaration " + type(decl).__name__)

    def declarations(self) -> list[Declaration]:
        """All declarations in emission order."""
        result: list[Declaration] = []
        result.extend(self.variables)
        result.extend(self.functions)
        result.extend(self.classes)
        result.extend(self.interfaces)
        result.extend(self.aliases)
        return result

    def is_empty(self) -> bool:
        return not self.declarations()


@dataclass(eq=False)
class SourceUnit:
    """One input file: the root container plus its modules in discovery order."""

    name: str
    root: Container = field(default_factory=Container)
    modules: list[Container] = field(default_factory=list)

    def containers(self) -> list[Container]:
        """Named modules first, root last."""
        return [*self.modules, self.root]

    def module(self, name: str, kind: ContainerKind, js_module: str | None = None) -> Container:
        """Return the container for `name`, creating it on first sight."""
        for existing in self.modules:
            if existing.name == name and existing.kind == kind and existing.js_module == js_module:
                return existing
        created = Container(name=name, kind=kind, js_module=js_module)
        self.modules.append(created)
        return created

    @property
    def base_name(self) -> str:
        """File name without directories and without `.d.ts` / `.ts`."""
        base = self.name.replace("\\", "/").rsplit("/", 1)[-1]
        for suffix in (".d.ts", ".d.mts", ".d.cts", ".ts", ".mts", ".cts"):
            if base.endswith(suffix):
                return base[: -len(suffix)]
        return base


# ============================================================
# CANONICAL SOURCE RENDERING
# ============================================================


def _params_source(params: tuple[Parameter, ...] | list[Parameter]) -> str:
    parts: list[str] = []
    for p in params:
        text = ("..." if p.rest else "") + p.name + ("?" if p.optional else "")
        if p.type is not None:
            text += ": " + p.type.source
        parts.append(text)
    return ", ".join(parts)


def type_to_source(typ: TypeExpr) -> str:
    """Render a type expression in TypeScript syntax."""
    match typ:
        case Primitive(name=name):
            return name
        case Named(name=name):
            return name
        case Generic(base=base, args=args):
            return base + "<" + ", ".join(a.source for a in args) + ">"
        case ArrayType(element=element):
            inner = element.source
            if isinstance(element, (Union, Intersection, FunctionType, Conditional)):
                inner = "(" + inner + ")"
            return inner + "[]"
        case Tuple(elements=elements):
            return "[" + ", ".join(e.source for e in elements) + "]"
        case FunctionType(params=params, ret=ret):
            return "(" + _params_source(params) + ") => " + ret.source
        case Union(members=members):
            return " | ".join(m.source for m in members)
        case Intersection(members=members):
            return " & ".join(m.source for m in members)
        case Conditional(check=check, extends=extends, when_true=t, when_false=f):
            return check.source + " extends " + extends.source + " ? " + t.source + " : " + f.source
        case Literal(kind="string", value=value):
            return '"' + value + '"'
        case Literal(kind="template", value=value):
            return "`" + value + "`"
        case Literal(value=value):
            return value
        case ObjectShape(properties=props, methods=methods):
            members = [
                p.name + ("?" if p.optional else "") + ": " + (p.type.source if p.type else "any")
                for p in props
            ]
            for m in methods:
                ret = m.return_type.source if m.return_type else "any"
                members.append(m.name + "(" + _params_source(m.params) + "): " + ret)
            if not members:
                return "{}"
            return "{ " + "; ".join(members) + " }"
        case TypeOperator(operator=op, operand=operand):
            return op + " " + operand.source
        case IndexedAccess(object=obj, index=index):
            return obj.source + "[" + index.source + "]"
        case Opaque(text=text):
            return text
        case _:
            return ""
