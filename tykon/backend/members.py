"""Member emitters: properties, methods, constructors and companion blocks.

Members are rendered to unindented lines first and laid out by the
declaration emitters afterwards, because overload collapse needs to see
every signature of a name before any of them is written.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from ..model import (
    ArrayType,
    ClassDecl,
    Constructor,
    Generic,
    InterfaceDecl,
    Method,
    Named,
    Parameter,
    Property,
    TypeExpr,
    TypeOperator,
    TypeParam,
)
from .docs import docs_lines
from .names import escape_identifier, is_private_name
from .types import last_segment
from .util import (
    ANY,
    DEFINED_EXTERNALLY,
    DYNAMIC,
    NOTHING,
    UNIT,
    comment_safe,
    nullable,
    split_comment,
    strip_comments,
)

if TYPE_CHECKING:
    from ..context import EmitContext

logger = logging.getLogger(__name__)

MemberOwner = Literal["class", "interface", "companion"]

# kotlin.Any members every external class inherits
UNIVERSAL_OVERRIDES = frozenset({"toString", "equals", "hashCode"})

# Ancestors whose members never count for override detection
IGNORED_ANCESTORS = frozenset({"Error"})

_MODIFIER_RE = re.compile(r"^(?:(?:override|open|abstract)\s+)+")


@dataclass
class RenderedMember:
    """One rendered member, ready for layout."""

    name: str
    kind: Literal["property", "method", "constructor"]
    line: str
    modifier: str = ""
    docs: list[str] = field(default_factory=list)

    @property
    def signature(self) -> str:
        """Rendering with modifiers, default markers and comments stripped."""
        text = _MODIFIER_RE.sub("", self.line)
        text = text.replace(" = " + DEFINED_EXTERNALLY, "")
        return strip_comments(text).strip()

    def lines(self) -> list[str]:
        return [*self.docs, self.line]


def generic_name(typ: TypeExpr | None) -> str | None:
    """Base name of a named or instantiated type, last segment only."""
    match typ:
        case Named(name=name):
            return last_segment(name)
        case Generic(base=base):
            return last_segment(base)
        case _:
            return None


class MemberEmitter:
    """Render members of classes, interfaces and companion objects."""

    def __init__(self, ctx: EmitContext) -> None:
        self.ctx = ctx

    # ---------------------------------------------------------------------------
    # Generics and parameters
    # ---------------------------------------------------------------------------

    def type_params(self, params: list[TypeParam]) -> tuple[str, str]:
        """Return ("<T, U>", " where T : Bound /* src */") for a parameter list.

        Parameters defaulting to `never` are internal and dropped; bounds that
        map to Any, dynamic or Unit say nothing and are dropped too.
        """
        names: list[str] = []
        clauses: list[str] = []
        for tp in params:
            if tp.default is not None and self.ctx.types.map(tp.default, strict=True) == NOTHING:
                continue
            name = escape_identifier(tp.name)
            if name in names:
                continue
            names.append(name)
            if tp.constraint is None:
                continue
            bound = self.ctx.types.map(tp.constraint, strict=True, no_dynamic=True)
            if split_comment(bound)[0] in (ANY, DYNAMIC, UNIT, ANY + "?"):
                continue
            clauses.append(name + " : " + bound + " /* " + comment_safe(tp.constraint.source) + " */")
        head = "<" + ", ".join(names) + ">" if names else ""
        tail = " where " + ", ".join(clauses) if clauses else ""
        return head, tail

    def parameter(self, p: Parameter) -> str:
        name = escape_identifier(p.name)
        if p.rest:
            element = p.type
            if isinstance(element, ArrayType):
                element = element.element
            elif isinstance(element, Generic) and element.args and last_segment(element.base) in (
                "Array",
                "ReadonlyArray",
            ):
                element = element.args[0]
            elif element is not None:
                element = None
            return "vararg " + name + ": " + self.ctx.types.map(element)
        mapped = self.ctx.types.map(p.type)
        if p.optional:
            return name + ": " + nullable(mapped) + " = " + DEFINED_EXTERNALLY
        return name + ": " + mapped

    def parameters(self, params: list[Parameter]) -> str:
        return ", ".join(self.parameter(p) for p in params if p.name != "this")

    # ---------------------------------------------------------------------------
    # Inheritance
    # ---------------------------------------------------------------------------

    def supertypes(self, decl: ClassDecl | InterfaceDecl) -> list[TypeExpr]:
        if isinstance(decl, ClassDecl):
            return [decl.parent] if decl.parent is not None else []
        return list(decl.extends)

    def ancestor_members(self, decl: ClassDecl | InterfaceDecl) -> set[str]:
        """Resolved names of instance members declared by any ancestor."""
        index = self.ctx.require_index()
        found: set[str] = set()
        seen: set[str] = set()
        pending = list(self.supertypes(decl))
        own = self.ctx.names.resolve_declaration(decl)
        seen.add(own)
        while pending:
            name = generic_name(pending.pop(0))
            if name is None or name in IGNORED_ANCESTORS:
                continue
            name = self.ctx.names.resolve(name)
            if name in seen:
                continue
            seen.add(name)
            for ancestor in index.declarations_of(name):
                for prop in ancestor.properties:
                    if not prop.static:
                        found.add(self.ctx.names.resolve(prop.name))
                for method in ancestor.methods:
                    if not method.static:
                        found.add(self.ctx.names.resolve(method.name))
                pending.extend(self.supertypes(ancestor))
        return found

    def modifier(
        self, name: str, owner: MemberOwner, ancestors: set[str], abstract: bool = False
    ) -> str:
        if owner == "companion":
            return ""
        if name in ancestors:
            return "override "
        if owner == "interface":
            return ""
        return "abstract " if abstract else "open "

    # ---------------------------------------------------------------------------
    # Members
    # ---------------------------------------------------------------------------

    def property(
        self, prop: Property, owner: MemberOwner, ancestors: set[str]
    ) -> RenderedMember | None:
        name = self.ctx.names.resolve(prop.name)
        if is_private_name(name):
            logger.debug("skipping private property %s", prop.name)
            return None
        if isinstance(prop.type, TypeOperator) and prop.type.operator == "typeof":
            logger.debug("skipping type-query property %s", prop.name)
            return None
        if self.ctx.types.map(prop.type, strict=True) == NOTHING:
            return None
        typ = self.ctx.types.map(prop.type)
        if prop.optional:
            typ = nullable(typ)
        keyword = "val" if prop.readonly else "var"
        modifier = self.modifier(name, owner, ancestors, prop.abstract)
        return RenderedMember(
            name=name,
            kind="property",
            line=modifier + keyword + " " + name + ": " + typ,
            modifier=modifier,
            docs=docs_lines(prop.docs),
        )

    def method(self, method: Method, owner: MemberOwner, ancestors: set[str]) -> RenderedMember | None:
        name = self.ctx.names.resolve(method.name)
        if is_private_name(name):
            logger.debug("skipping private method %s", method.name)
            return None
        arity = len([p for p in method.params if p.name != "this"])
        modifier = self.modifier(name, owner, ancestors, method.abstract)
        if owner != "companion" and name in UNIVERSAL_OVERRIDES and arity == 0:
            modifier = "override "
        docs = docs_lines(method.docs)
        if method.optional:
            # Optional methods cannot be functions; expose a nullable function value
            fn = self.ctx.types.function_type(method.params, method.return_type)
            return RenderedMember(
                name=name,
                kind="property",
                line=modifier + "val " + name + ": " + nullable(fn),
                modifier=modifier,
                docs=docs,
            )
        head, where = self.type_params(method.type_params)
        ret = self.ctx.types.map(method.return_type)
        line = modifier + "fun " + (head + " " if head else "") + name
        line += "(" + self.parameters(method.params) + "): " + ret + where
        return RenderedMember(name=name, kind="method", line=line, modifier=modifier, docs=docs)

    def constructor(self, ctor: Constructor) -> RenderedMember:
        return RenderedMember(
            name="constructor",
            kind="constructor",
            line="constructor(" + self.parameters(ctor.params) + ")",
            docs=docs_lines(ctor.docs),
        )

    def constructors(self, ctors: list[Constructor]) -> list[RenderedMember]:
        """One constructor per distinct overload."""
        result: list[RenderedMember] = []
        seen: set[str] = set()
        for ctor in ctors:
            rendered = self.constructor(ctor)
            if rendered.signature in seen:
                continue
            seen.add(rendered.signature)
            result.append(rendered)
        return result

    def members(
        self,
        properties: list[Property],
        methods: list[Method],
        owner: MemberOwner,
        ancestors: set[str],
        static: bool = False,
    ) -> list[RenderedMember]:
        """Properties then methods of one static-ness, overloads collapsed."""
        rendered: list[RenderedMember] = []
        taken: set[str] = set()
        for prop in properties:
            if prop.static != static:
                continue
            r = self.property(prop, owner, ancestors)
            if r is None or r.name in taken:
                continue
            taken.add(r.name)
            rendered.append(r)
        method_members: list[RenderedMember] = []
        for method in methods:
            if method.static != static:
                continue
            r = self.method(method, owner, ancestors)
            if r is None:
                continue
            if r.kind == "property" and (r.name in taken or any(m.name == r.name for m in method_members)):
                continue
            method_members.append(r)
        rendered.extend(collapse_overloads(method_members))
        return rendered


def collapse_overloads(members: list[RenderedMember]) -> list[RenderedMember]:
    """Keep one rendering per name; names with distinct overloads become dynamic.

    Identical renderings are duplicates and dropped. A name rendered more
    than one distinct way is replaced, at its first position, by a single
    `val name: dynamic` member; its later overloads are dropped.
    """
    groups: dict[str, list[str]] = {}
    for m in members:
        sigs = groups.setdefault(m.name, [])
        if m.signature not in sigs:
            sigs.append(m.signature)
    result: list[RenderedMember] = []
    done: set[str] = set()
    for m in members:
        if m.name in done:
            continue
        done.add(m.name)
        count = len(groups[m.name])
        if count == 1:
            result.append(m)
            continue
        modifier = "" if m.modifier == "abstract " else m.modifier
        result.append(
            RenderedMember(
                name=m.name,
                kind="property",
                line=modifier + "val " + m.name + ": " + DYNAMIC + " /* " + str(count) + " overloads */",
                modifier=modifier,
                docs=m.docs,
            )
        )
    return result
