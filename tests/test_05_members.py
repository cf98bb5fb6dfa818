"""Pytest-based member emission tests."""

from tykon.backend.kotlin import KotlinBackend
from tykon.backend.members import RenderedMember, collapse_overloads
from tykon.config import Config
from tykon.model import (
    ArrayType,
    ClassDecl,
    Constructor,
    Doc,
    Generic,
    InterfaceDecl,
    Method,
    Named,
    Parameter,
    Primitive,
    Property,
    SourceUnit,
    TypeOperator,
    TypeParam,
)

STRING = Primitive("string")
NUMBER = Primitive("number")
VOID = Primitive("void")


def emit_root(config: Config, *decls) -> str:
    """Root artifact text of a unit holding decls."""
    unit = SourceUnit(name="lib.d.ts")
    for decl in decls:
        unit.root.add(decl)
    return KotlinBackend(config).emit(unit)["lib.kt"]


def body(text: str) -> str:
    """Everything after the package line and its blank line."""
    return text.split("package com.example\n\n", 1)[1]


# ---------------------------------------------------------------------------
# Overloads
# ---------------------------------------------------------------------------


def test_distinct_overloads_collapse_to_dynamic(config: Config) -> None:
    api = InterfaceDecl(
        name="Api",
        methods=[
            Method("send", [Parameter("data", STRING)], VOID),
            Method("send", [Parameter("data", NUMBER)], VOID),
            Method("close", [], VOID),
        ],
    )
    assert body(emit_root(config, api)) == (
        "external interface Api {\n"
        "    val send: dynamic /* 2 overloads */\n"
        "\n"
        "    fun close(): Unit\n"
        "}\n"
    )


def test_identical_overloads_are_deduplicated(config: Config) -> None:
    api = InterfaceDecl(
        name="Api",
        methods=[Method("close", [], VOID), Method("close", [], VOID)],
    )
    text = emit_root(config, api)
    assert text.count("fun close(): Unit") == 1
    assert "dynamic" not in text


def test_class_overloads_keep_open_modifier(config: Config) -> None:
    cls = ClassDecl(
        name="Socket",
        methods=[
            Method("send", [Parameter("data", STRING)], VOID),
            Method("send", [Parameter("data", NUMBER), Parameter("flag", Primitive("boolean"))], VOID),
            Method("send", [Parameter("data", ArrayType(NUMBER))], VOID),
        ],
    )
    assert "    open val send: dynamic /* 3 overloads */\n" in emit_root(config, cls)


def test_abstract_overloads_drop_abstract() -> None:
    members = [
        RenderedMember("run", "method", "abstract fun run(): Unit", modifier="abstract "),
        RenderedMember("run", "method", "abstract fun run(a: String): Unit", modifier="abstract "),
    ]
    collapsed = collapse_overloads(members)
    assert [m.line for m in collapsed] == ["val run: dynamic /* 2 overloads */"]


def test_overloads_differing_only_in_defaults_are_identical() -> None:
    members = [
        RenderedMember("f", "method", "open fun f(a: String? = definedExternally): Unit", modifier="open "),
        RenderedMember("f", "method", "override fun f(a: String?): Unit", modifier="override "),
    ]
    assert len(collapse_overloads(members)) == 1


# ---------------------------------------------------------------------------
# Inheritance
# ---------------------------------------------------------------------------


def test_interface_override_from_extended_interface(config: Config) -> None:
    base = InterfaceDecl(name="Base", properties=[Property("name", STRING)])
    child = InterfaceDecl(
        name="Child",
        extends=[Named("Base")],
        properties=[Property("name", STRING), Property("size", NUMBER)],
    )
    text = emit_root(config, base, child)
    assert "external interface Child : Base {\n    override var name: String\n\n    var size: Double\n}" in text


def test_class_override_from_parent_class(config: Config) -> None:
    animal = ClassDecl(name="Animal", methods=[Method("speak", [], VOID)])
    dog = ClassDecl(
        name="Dog",
        parent=Named("Animal"),
        methods=[Method("speak", [], VOID), Method("fetch", [], VOID)],
    )
    text = emit_root(config, animal, dog)
    assert "external open class Dog : Animal {" in text
    assert "    override fun speak(): Unit\n" in text
    assert "    open fun fetch(): Unit\n" in text


def test_override_through_grandparent(config: Config) -> None:
    a = InterfaceDecl(name="A", methods=[Method("ping", [], VOID)])
    b = InterfaceDecl(name="B", extends=[Named("A")])
    c = InterfaceDecl(name="C", extends=[Generic("B", (STRING,))], methods=[Method("ping", [], VOID)])
    text = emit_root(config, a, b, c)
    assert "external interface C : B<String> {\n    override fun ping(): Unit\n}" in text


def test_error_parent_is_dropped(config: Config) -> None:
    cls = ClassDecl(name="HttpError", parent=Named("Error"), properties=[Property("message", STRING)])
    text = emit_root(config, cls)
    assert "external open class HttpError {" in text
    assert "    open var message: String\n" in text


def test_universal_members_override(config: Config) -> None:
    iface = InterfaceDecl(
        name="Printable",
        methods=[Method("toString", [], STRING), Method("toString", [Parameter("radix", NUMBER)], STRING)],
    )
    cls = ClassDecl(name="Money", methods=[Method("toString", [], STRING)])
    text = emit_root(config, iface, cls)
    assert "    override fun toString(): String\n" in text
    assert "override val toString: dynamic /* 2 overloads */" in text


# ---------------------------------------------------------------------------
# Generics and parameters
# ---------------------------------------------------------------------------


def test_type_parameter_bounds(config: Config) -> None:
    iface = InterfaceDecl(
        name="Store",
        methods=[
            Method(
                "get",
                [Parameter("id", STRING)],
                Named("T"),
                type_params=[TypeParam("T", constraint=Named("Node"))],
            )
        ],
    )
    assert "    fun <T> get(id: String): T where T : Node /* Node */\n" in emit_root(config, iface)


def test_type_parameters_defaulting_to_never_are_dropped(config: Config) -> None:
    iface = InterfaceDecl(
        name="Picker",
        methods=[
            Method(
                "pick",
                [Parameter("value", Named("U"))],
                Named("T"),
                type_params=[
                    TypeParam("T"),
                    TypeParam("Internal", default=Primitive("never")),
                    TypeParam("U", constraint=Primitive("any")),
                ],
            )
        ],
    )
    assert "    fun <T, U> pick(value: U): T\n" in emit_root(config, iface)


def test_parameter_forms(config: Config) -> None:
    iface = InterfaceDecl(
        name="Logger",
        methods=[
            Method(
                "log",
                [
                    Parameter("this", Named("Console")),
                    Parameter("message", STRING),
                    Parameter("level", NUMBER, optional=True),
                    Parameter("rest", ArrayType(Primitive("any")), rest=True),
                ],
                VOID,
            ),
            Method("all", [Parameter("xs", Generic("Array", (STRING,)), rest=True)], VOID),
            Method("untyped", [Parameter("args", rest=True)], None),
        ],
    )
    text = emit_root(config, iface)
    assert "fun log(message: String, level: Double? = definedExternally, vararg rest: Any): Unit" in text
    assert "fun all(vararg xs: String): Unit" in text
    assert "fun untyped(vararg args: Any): Any" in text


def test_reserved_parameter_names_are_escaped(config: Config) -> None:
    iface = InterfaceDecl(name="Loop", methods=[Method("each", [Parameter("in", STRING)], VOID)])
    assert "fun each(`in`: String): Unit" in emit_root(config, iface)


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


def test_property_forms(config: Config) -> None:
    iface = InterfaceDecl(
        name="Item",
        properties=[
            Property("title", STRING, optional=True),
            Property("id", NUMBER, readonly=True),
            Property("__secret", STRING),
            Property("ref", TypeOperator("typeof", Named("registry"))),
            Property("impossible", Primitive("never")),
            Property("fun", STRING),
            Property("'content-type'", STRING),
        ],
    )
    assert body(emit_root(config, iface)) == (
        "external interface Item {\n"
        "    var title: String?\n"
        "\n"
        "    val id: Double\n"
        "\n"
        "    var `fun`: String\n"
        "\n"
        "    var `content-type`: String\n"
        "}\n"
    )


def test_property_without_kotlin_spelling_is_skipped(config: Config) -> None:
    iface = InterfaceDecl(
        name="Headers",
        properties=[Property('"a.b"', STRING), Property('"content-type"', STRING)],
    )
    text = emit_root(config, iface)
    assert "a_b" not in text
    assert "a.b" not in text
    assert "    var `content-type`: String\n" in text


def test_optional_method_becomes_nullable_function_value(config: Config) -> None:
    iface = InterfaceDecl(
        name="Handlers",
        methods=[Method("onClose", [Parameter("code", NUMBER)], VOID, optional=True)],
    )
    assert "    val onClose: ((Double) -> Unit)?\n" in emit_root(config, iface)


def test_property_wins_over_optional_method(config: Config) -> None:
    iface = InterfaceDecl(
        name="Both",
        properties=[Property("run", STRING)],
        methods=[Method("run", [], VOID, optional=True)],
    )
    text = emit_root(config, iface)
    assert "var run: String" in text
    assert "val run" not in text


def test_member_docs(config: Config) -> None:
    iface = InterfaceDecl(
        name="Doc",
        properties=[Property("a", STRING, docs=[Doc(description="The a.")])],
    )
    assert "    /**\n     * The a.\n     */\n    var a: String\n" in emit_root(config, iface)


# ---------------------------------------------------------------------------
# Constructors and statics
# ---------------------------------------------------------------------------


def test_constructors_deduplicated(config: Config) -> None:
    cls = ClassDecl(
        name="Point",
        constructors=[
            Constructor([Parameter("x", NUMBER)]),
            Constructor([Parameter("x", NUMBER)]),
            Constructor([Parameter("x", NUMBER), Parameter("y", NUMBER, optional=True)]),
        ],
    )
    assert body(emit_root(config, cls)) == (
        "external open class Point {\n"
        "    constructor(x: Double)\n"
        "\n"
        "    constructor(x: Double, y: Double? = definedExternally)\n"
        "}\n"
    )


def test_static_members_go_to_companion(config: Config) -> None:
    cls = ClassDecl(
        name="Counter",
        properties=[Property("count", NUMBER, static=True), Property("value", NUMBER)],
        methods=[Method("reset", [], VOID, static=True)],
    )
    assert body(emit_root(config, cls)) == (
        "external open class Counter {\n"
        "    open var value: Double\n"
        "\n"
        "    companion object {\n"
        "        var count: Double\n"
        "\n"
        "        fun reset(): Unit\n"
        "    }\n"
        "}\n"
    )


def test_abstract_members(config: Config) -> None:
    cls = ClassDecl(
        name="Job",
        abstract=True,
        methods=[Method("run", [], VOID, abstract=True), Method("cancel", [], VOID)],
    )
    text = emit_root(config, cls)
    assert "external abstract class Job {" in text
    assert "    abstract fun run(): Unit\n" in text
    assert "    open fun cancel(): Unit\n" in text
