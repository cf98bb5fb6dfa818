"""Type mapping: TypeScript type expressions -> Kotlin/JS type text.

The mapper is total: every input produces some Kotlin type. Anything it
cannot map confidently degrades to the opaque marker (`dynamic`, or `Any`
where `dynamic` is not allowed) followed by the original TypeScript text in
a block comment, so every lossy spot stays greppable in the output.
"""

from __future__ import annotations

from ..middleend.constants import ConstantTable
from ..model import (
    ArrayType,
    Conditional,
    FunctionType,
    Generic,
    IndexedAccess,
    Intersection,
    Literal,
    Named,
    ObjectShape,
    Opaque,
    Parameter,
    Primitive,
    Tuple,
    TypeExpr,
    TypeOperator,
    Union,
)
from .util import ANY, DYNAMIC, UNIT, is_opaque, nullable, split_comment, with_comment

# Direct name -> Kotlin type lookups
TYPE_TABLE: dict[str, str] = {
    # Primitive types
    "string": "String",
    "number": "Double",
    "bigint": "Long",
    "boolean": "Boolean",
    "symbol": "Any",
    "any": "Any",
    "object": "Any",
    "unknown": "Any",
    "void": "Unit",
    "undefined": "Unit",
    "null": "Unit",
    "never": "Nothing",
    # Typed arrays
    "Int8Array": "ByteArray",
    "Uint8Array": "ByteArray",
    "Uint8ClampedArray": "ByteArray",
    "Int16Array": "ShortArray",
    "Uint16Array": "ShortArray",
    "Int32Array": "IntArray",
    "Uint32Array": "IntArray",
    "Float32Array": "FloatArray",
    "Float64Array": "DoubleArray",
    # Library types
    "Object": "Any",
    "Record": "Map",
    "Promise": "Promise",
    "PromiseLike": "Promise",
    "Array": "Array",
    "ReadonlyArray": "Array",
    "Error": "Throwable",
    "Function": "Function<*>",
}

# Wrappers that add nothing Kotlin can express: Readonly<T> is T
PASS_THROUGH = frozenset({"Readonly", "Partial", "Required", "NonNullable", "Awaited"})

# Type-level computations with no Kotlin counterpart
OPAQUE_GENERICS = frozenset(
    {
        "Omit",
        "Pick",
        "Exclude",
        "Extract",
        "ReturnType",
        "Parameters",
        "InstanceType",
        "ConstructorParameters",
        "ThisParameterType",
        "OmitThisParameter",
        "Uppercase",
        "Lowercase",
        "Capitalize",
        "Uncapitalize",
    }
)

# Members that make a union nullable instead of wider
NULLISH = frozenset({"undefined", "null", "void"})


def last_segment(name: str) -> str:
    return name.rsplit(".", 1)[-1]


def is_this(typ: TypeExpr) -> bool:
    return isinstance(typ, Primitive) and typ.name == "this"


def is_nullish(typ: TypeExpr) -> bool:
    return isinstance(typ, Primitive) and typ.name in NULLISH


class TypeMapper:
    """Map type expressions to Kotlin type text.

    The only side effect is recording string literals in the constant table.
    """

    def __init__(self, constants: ConstantTable) -> None:
        self.constants = constants

    def map(self, typ: TypeExpr | None, strict: bool = False, no_dynamic: bool = False) -> str:
        """Kotlin type for typ.

        strict drops the explanatory comment from fallbacks; no_dynamic uses
        `Any` as the fallback marker (for positions where `dynamic` is illegal,
        such as typealias targets and supertypes).
        """
        if typ is None:
            return ANY
        match typ:
            case Primitive(name="this"):
                return self._fallback(typ, strict, no_dynamic)
            case Primitive(name=name):
                return TYPE_TABLE[name]
            case Named(name=name):
                base = last_segment(name)
                return TYPE_TABLE.get(base, base)
            case TypeOperator(operator="keyof"):
                return self._fallback(typ, strict, no_dynamic)
            case TypeOperator(operand=operand):
                return self.map(operand, strict, no_dynamic)
            case Generic():
                return self._generic(typ, strict, no_dynamic)
            case Union(members=members):
                return self._union(typ, members, strict, no_dynamic)
            case Intersection():
                return self._fallback(typ, strict, no_dynamic)
            case Conditional():
                return self._conditional(typ, strict, no_dynamic)
            case FunctionType(params=params, ret=ret):
                return self.function_type(params, ret, strict, no_dynamic)
            case Literal(kind="string", value=value):
                self.constants.record_literal(value)
                if typ.text:
                    self.constants.record(typ.text, value)
                return "String"
            case Literal(kind="number"):
                return "Double"
            case Literal(kind="boolean"):
                return "Boolean"
            case Literal(kind="template"):
                return "String"
            case ArrayType(element=element):
                return "Array<" + self.map(element, strict, no_dynamic) + ">"
            case Tuple(elements=elements):
                return self._tuple(typ, elements, strict, no_dynamic)
            case ObjectShape() | IndexedAccess() | Opaque():
                return self._fallback(typ, strict, no_dynamic)
            case _:
                return self._fallback(typ, strict, no_dynamic)

    def _fallback(self, typ: TypeExpr, strict: bool, no_dynamic: bool) -> str:
        return with_comment(ANY if no_dynamic else DYNAMIC, typ.source, strict)

    def _generic(self, typ: Generic, strict: bool, no_dynamic: bool) -> str:
        base = last_segment(typ.base)
        if base in OPAQUE_GENERICS:
            return self._fallback(typ, strict, no_dynamic)
        args: list[str] = []
        for a in typ.args:
            if is_this(a):
                continue
            mapped = self.map(a, strict, no_dynamic)
            # Promise<void> carries no value: Promise
            if split_comment(mapped)[0] == UNIT:
                continue
            args.append(mapped)
        if base in PASS_THROUGH and len(typ.args) == 1 and not is_this(typ.args[0]):
            return args[0] if args else UNIT
        mapped = TYPE_TABLE.get(base, base)
        if not args or mapped == "Function<*>":
            return mapped
        return mapped + "<" + ", ".join(args) + ">"

    def _union(
        self, typ: Union, members: tuple[TypeExpr, ...], strict: bool, no_dynamic: bool
    ) -> str:
        present = [m for m in members if not is_nullish(m)]
        if not present:
            return UNIT
        distinct: list[str] = []
        for m in present:
            mapped = self.map(m, strict=True, no_dynamic=no_dynamic)
            if mapped not in distinct:
                distinct.append(mapped)
        if len(present) == 1 or (len(distinct) == 1 and not is_opaque(distinct[0])):
            result = self.map(present[0], strict, no_dynamic)
        else:
            result = self._fallback(typ, strict, no_dynamic)
        if len(present) < len(members):
            return nullable(result)
        return result

    def _conditional(self, typ: Conditional, strict: bool, no_dynamic: bool) -> str:
        extends = typ.extends
        if isinstance(extends, TypeOperator) and extends.operator == "new":
            extends = extends.operand
        if isinstance(extends, FunctionType) and self.map(typ.when_false, strict=True) == ANY:
            return nullable(self.map(typ.when_true, strict, no_dynamic))
        return self._fallback(typ, strict, no_dynamic)

    def _tuple(
        self, typ: Tuple, elements: tuple[TypeExpr, ...], strict: bool, no_dynamic: bool
    ) -> str:
        mapped = [self.map(e, strict=True, no_dynamic=no_dynamic) for e in elements]
        if mapped and all(m == mapped[0] for m in mapped) and not is_opaque(mapped[0]):
            return "Array<" + self.map(elements[0], strict, no_dynamic) + ">"
        marker = ANY if no_dynamic else DYNAMIC
        return with_comment("Array<" + marker + ">", typ.source, strict)

    def function_type(
        self,
        params: tuple[Parameter, ...] | list[Parameter],
        ret: TypeExpr | None,
        strict: bool = False,
        no_dynamic: bool = False,
    ) -> str:
        """Kotlin function type; `this` and Unit-typed parameters are dropped."""
        parts: list[str] = []
        for p in params:
            if p.name == "this":
                continue
            mapped = self.map(p.type, strict, no_dynamic)
            if split_comment(mapped)[0] == UNIT:
                continue
            if p.optional:
                mapped = nullable(mapped)
            parts.append(mapped)
        return "(" + ", ".join(parts) + ") -> " + self.map(ret, strict, no_dynamic)
