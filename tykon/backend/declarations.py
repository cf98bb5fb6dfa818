"""Declaration emitters: variables, functions, classes, interfaces, type aliases.

Each emitter returns the lines of one top-level declaration (unindented),
or an empty list when the declaration is skipped. Type aliases and creator
helpers never come back as lines: they are queued on the context's pending
alias buffer and end up in the separate aliases artifact.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..errors import AmbientError
from ..model import (
    ArrayType,
    ClassDecl,
    Conditional,
    Container,
    Declaration,
    Doc,
    FunctionDecl,
    Generic,
    InterfaceDecl,
    Intersection,
    Literal,
    Method,
    Named,
    ObjectShape,
    Primitive,
    Property,
    TypeAliasDecl,
    TypeExpr,
    TypeParam,
    VariableDecl,
)
from .docs import docs_lines
from .members import IGNORED_ANCESTORS, MemberEmitter, RenderedMember, generic_name
from .names import is_private_name
from .types import is_this
from .util import ANY, Emitter, is_opaque, nullable, with_comment

if TYPE_CHECKING:
    from ..context import EmitContext

logger = logging.getLogger(__name__)

# False branches that make a conditional alias merely nullable
_EMPTY_BRANCHES = frozenset({"undefined", "unknown", "never", "void", "null"})


def _require_ambient(decl: Declaration, kind: str) -> None:
    if not decl.ambient:
        raise AmbientError(kind, decl.name)


class DeclarationEmitter(Emitter):
    """Render top-level declarations of one container at a time."""

    def __init__(self, ctx: EmitContext) -> None:
        super().__init__(ctx.indent)
        self.ctx = ctx
        self.members = MemberEmitter(ctx)
        self.container: Container = Container()
        self._seen: set[tuple[str, str]] = set()

    def begin_container(self, container: Container) -> None:
        """Start a container: per-container duplicate tracking resets."""
        self.container = container
        self._seen = set()
        self.take()

    def _first_time(self, kind: str, key: str) -> bool:
        if (kind, key) in self._seen:
            return False
        self._seen.add((kind, key))
        return True

    def _owned(self, name: str, kind: str) -> bool:
        index = self.ctx.require_index()
        return index.is_owner(self.container, name, kind)  # type: ignore[arg-type]

    # ---------------------------------------------------------------------------
    # Layout helpers
    # ---------------------------------------------------------------------------

    def _docs(self, docs: list[Doc]) -> None:
        for text in docs_lines(docs):
            self.line(text)

    def _member_block(self, members: list[RenderedMember], first: bool = True) -> bool:
        for r in members:
            if not first:
                self.line()
            for text in r.lines():
                self.line(text)
            first = False
        return first

    def _body(
        self,
        header: str,
        ctors: list[RenderedMember],
        instance: list[RenderedMember],
        statics: list[RenderedMember],
    ) -> list[str]:
        if not ctors and not instance and not statics:
            self.line(header)
            return self.take()
        self.line(header + " {")
        self.indent += 1
        first = self._member_block(ctors)
        first = self._member_block(instance, first)
        if statics:
            if not first:
                self.line()
            self.line("companion object {")
            self.indent += 1
            self._member_block(statics)
            self.indent -= 1
            self.line("}")
        self.indent -= 1
        self.line("}")
        return self.take()

    def _supertype(self, typ: TypeExpr) -> str | None:
        """Kotlin supertype text, or None when it must be dropped."""
        base = generic_name(typ)
        if base is None or base in IGNORED_ANCESTORS:
            return None
        if isinstance(typ, Generic):
            head = self.ctx.types.map(Named(typ.base), strict=True, no_dynamic=True)
            if is_opaque(head):
                return None
            args = [self.ctx.types.map(a, no_dynamic=True) for a in typ.args if not is_this(a)]
            if not args:
                return head
            return head + "<" + ", ".join(args) + ">"
        mapped = self.ctx.types.map(typ, strict=True, no_dynamic=True)
        if is_opaque(mapped):
            return None
        return mapped

    def _merge_members(
        self,
        sources: list[tuple[list[Property], list[Method]]],
    ) -> tuple[list[Property], list[Method]]:
        """Concatenate member lists; later sources add only names not yet present.

        Overloads inside one source are all kept so they can collapse later.
        """
        props: list[Property] = []
        methods: list[Method] = []
        present: set[str] = set()
        for src_props, src_methods in sources:
            added: set[str] = set()
            for p in src_props:
                name = self.ctx.names.resolve(p.name)
                if name not in present:
                    props.append(p)
                    added.add(name)
            for m in src_methods:
                name = self.ctx.names.resolve(m.name)
                if name not in present:
                    methods.append(m)
                    added.add(name)
            present |= added
        return props, methods

    # ---------------------------------------------------------------------------
    # Variables and functions
    # ---------------------------------------------------------------------------

    def emit_variable(self, decl: VariableDecl) -> list[str]:
        if decl.local:
            logger.debug("skipping local variable %s", decl.name)
            return []
        name = self.ctx.names.resolve_declaration(decl)
        if is_private_name(name):
            logger.debug("skipping private variable %s", decl.name)
            return []
        mapped = self.ctx.types.map(decl.type)
        if mapped.startswith("<"):
            logger.debug("dropping variable %s with malformed type %s", decl.name, mapped)
            return []
        if isinstance(decl.type, Literal) and decl.type.kind == "string":
            self.ctx.constants.record(decl.name, decl.type.value)
        if not self._first_time("variable", name):
            return []
        self._docs(decl.docs)
        keyword = "val" if decl.readonly else "var"
        self.line("external " + keyword + " " + name + ": " + mapped)
        return self.take()

    def emit_function(self, decl: FunctionDecl) -> list[str]:
        _require_ambient(decl, "function")
        name = self.ctx.names.resolve_declaration(decl)
        if is_private_name(name):
            return []
        head, where = self.members.type_params(decl.type_params)
        ret = self.ctx.types.map(decl.return_type)
        line = "external fun " + (head + " " if head else "") + name
        line += "(" + self.members.parameters(decl.params) + "): " + ret + where
        if not self._first_time("function", line):
            logger.debug("dropping duplicate overload of %s", name)
            return []
        self._docs(decl.docs)
        self.line(line)
        return self.take()

    # ---------------------------------------------------------------------------
    # Classes and interfaces
    # ---------------------------------------------------------------------------

    def emit_class(self, decl: ClassDecl) -> list[str]:
        _require_ambient(decl, "class")
        index = self.ctx.require_index()
        name = self.ctx.names.resolve_declaration(decl)
        if is_private_name(name) or not self._owned(name, "class"):
            return []
        if not self._first_time("class", name):
            return []
        ancestors = self.members.ancestor_members(decl)
        sources: list[tuple[list[Property], list[Method]]] = [(decl.properties, decl.methods)]
        # Same-named classes of other containers add members the owner lacks
        for other in index.classes_for(name):
            if other is not decl:
                sources.append((other.properties, other.methods))
        for iface in index.interfaces_for(name):
            sources.append((iface.properties, iface.methods))
            ancestors |= self.members.ancestor_members(iface)
        props, methods = self._merge_members(sources)
        head, where = self.members.type_params(decl.type_params)
        header = "external " + ("abstract" if decl.abstract else "open") + " class " + name + head
        if decl.parent is not None:
            parent = self._supertype(decl.parent)
            if parent is not None:
                header += " : " + parent
        header += where
        ctors = self.members.constructors(decl.constructors)
        instance = self.members.members(props, methods, "class", ancestors)
        statics = self.members.members(props, methods, "companion", set(), static=True)
        self._docs(decl.docs)
        return self._body(header, ctors, instance, statics)

    def emit_interface(self, decl: InterfaceDecl) -> list[str]:
        _require_ambient(decl, "interface")
        index = self.ctx.require_index()
        name = self.ctx.names.resolve_declaration(decl)
        if is_private_name(name):
            return []
        if index.is_class(name):
            logger.debug("interface %s merges into class", name)
            return []
        if not self._owned(name, "interface") or not self._first_time("interface", name):
            return []
        decls = index.interfaces_for(name) or [decl]
        docs = next((d.docs for d in decls if d.docs), [])
        return self._interface(name, decls, docs)

    def _interface(self, name: str, decls: list[InterfaceDecl], docs: list[Doc]) -> list[str]:
        type_params: list[TypeParam] = []
        seen_params: set[str] = set()
        supers: list[str] = []
        ancestors: set[str] = set()
        for d in decls:
            for tp in d.type_params:
                if tp.name not in seen_params:
                    seen_params.add(tp.name)
                    type_params.append(tp)
            for ext in d.extends:
                mapped = self._supertype(ext)
                if mapped is not None and mapped not in supers:
                    supers.append(mapped)
            ancestors |= self.members.ancestor_members(d)
        props, methods = self._merge_members([(d.properties, d.methods) for d in decls])
        head, where = self.members.type_params(type_params)
        header = "external interface " + name + head
        if supers:
            header += " : " + ", ".join(supers)
        header += where
        instance = self.members.members(props, methods, "interface", ancestors)
        self._docs(docs)
        return self._body(header, [], instance, [])

    # ---------------------------------------------------------------------------
    # Type aliases
    # ---------------------------------------------------------------------------

    def emit_alias(self, decl: TypeAliasDecl) -> list[str]:
        """Shape-dispatched alias emission.

        | Aliased type                  | Output                               |
        |-------------------------------|--------------------------------------|
        | object shape                  | external interface + buffered creator|
        | intersection with shape(s)    | external interface + buffered creator|
        | intersection without shape    | buffered opaque typealias            |
        | conditional                   | buffered nullable/plain/opaque alias |
        | anything else                 | buffered typealias of mapped type    |
        """
        _require_ambient(decl, "type alias")
        index = self.ctx.require_index()
        name = self.ctx.names.resolve_declaration(decl)
        if is_private_name(name):
            return []
        if index.is_class(name) or index.interfaces_for(name):
            logger.debug("alias %s left to the declaration of the same name", name)
            return []
        if not self._owned(name, "alias") or not self._first_time("alias", name):
            return []
        typ = decl.type
        match typ:
            case ObjectShape(properties=props, methods=methods):
                return self._shape_interface(decl, name, [], [(list(props), list(methods))])
            case Intersection(members=members):
                shapes = [m for m in members if isinstance(m, ObjectShape)]
                if not shapes:
                    self._typealias(decl, name, with_comment(ANY, typ.source))
                    return []
                named = [m for m in members if not isinstance(m, ObjectShape)]
                sources = [(list(s.properties), list(s.methods)) for s in shapes]
                return self._shape_interface(decl, name, named, sources)
            case Conditional():
                self._typealias(decl, name, self._conditional_target(typ))
                return []
            case ArrayType(element=element):
                target = "Array<" + self.ctx.types.map(element, no_dynamic=True) + ">"
                self._typealias(decl, name, target)
                return []
            case _:
                self._typealias(decl, name, self.ctx.types.map(typ, no_dynamic=True))
                return []

    def _conditional_target(self, typ: Conditional) -> str:
        when_false = typ.when_false
        if isinstance(when_false, Primitive) and when_false.name in _EMPTY_BRANCHES:
            return nullable(self.ctx.types.map(typ.when_true, no_dynamic=True))
        true_mapped = self.ctx.types.map(typ.when_true, strict=True, no_dynamic=True)
        false_mapped = self.ctx.types.map(typ.when_false, strict=True, no_dynamic=True)
        if true_mapped == false_mapped:
            return self.ctx.types.map(typ.when_true, no_dynamic=True)
        return with_comment(ANY, typ.source)

    def _typealias(self, decl: TypeAliasDecl, name: str, target: str) -> None:
        lines = docs_lines(decl.docs)
        head, _ = self.members.type_params(decl.type_params)
        lines.append("typealias " + name + head + " = " + target)
        self.ctx.buffer_alias(lines)

    def _shape_interface(
        self,
        decl: TypeAliasDecl,
        name: str,
        named: list[TypeExpr],
        sources: list[tuple[list[Property], list[Method]]],
    ) -> list[str]:
        props, methods = self._merge_members(sources)
        synthetic = InterfaceDecl(
            name=decl.name,
            docs=decl.docs,
            type_params=decl.type_params,
            extends=named,
            properties=props,
            methods=methods,
        )
        lines = self._interface(name, [synthetic], decl.docs)
        self.ctx.buffer_alias(self._creator(name, decl.type_params))
        return lines

    def _creator(self, name: str, type_params: list[TypeParam]) -> list[str]:
        head, _ = self.members.type_params(type_params)
        self_type = name + head
        prefix = "inline fun " + (head + " " if head else "")
        return [
            prefix
            + name
            + "(block: "
            + self_type
            + ".() -> Unit): "
            + self_type
            + ' = js("({})").unsafeCast<'
            + self_type
            + ">().apply(block)"
        ]


