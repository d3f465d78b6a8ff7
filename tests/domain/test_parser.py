"""Tests for the Thrift IDL parser."""

from __future__ import annotations

import pytest

from idlroute.domain.idl import Document, TypeRef
from idlroute.domain.parser import parse_idl
from idlroute.domain.types import DefinitionKind
from idlroute.errors import IdlParseError


class TestSampleDocument:
    def test_top_level_order(self, document: Document) -> None:
        assert document.order == (
            "username",
            "Plan",
            "Account",
            "Owner",
            "AccountExists",
            "Accounts",
        )
        assert document.namespaces == {"py": "accounts"}
        assert document.source == "accounts.thrift"

    def test_typedef(self, document: Document) -> None:
        typedef = document.type("username")
        assert typedef is not None
        assert typedef.kind == DefinitionKind.TYPEDEF
        assert typedef.target == TypeRef("string")
        assert typedef.doc.tag("validate") == ("regex /^[a-z][a-z0-9_]*$/", "length 3-32")

    def test_enum_values(self, document: Document) -> None:
        plan = document.type("Plan")
        assert plan is not None
        assert [(v.name, v.value) for v in plan.values] == [("FREE", 1), ("PRO", 2)]

    def test_struct_fields(self, document: Document) -> None:
        account = document.type("Account")
        assert account is not None
        assert [f.name for f in account.fields] == ["id", "allocation", "plan"]
        assert [f.id for f in account.fields] == [1, 2, 3]
        assert [f.required for f in account.fields] == [True, True, False]

    def test_field_docs(self, document: Document) -> None:
        owner = document.type("Owner")
        assert owner is not None
        email = owner.field("email")
        assert email is not None
        assert email.doc.tag("validate") == ("regex /@/",)
        tags = owner.field("tags")
        assert tags is not None
        assert str(tags.type) == "list<string>"

    def test_service_methods(self, document: Document) -> None:
        service = document.service("Accounts")
        assert service is not None
        assert service.method_names == ["createAccount", "getAccount", "tagAccount"]
        create = service.method("createAccount")
        assert create is not None
        assert create.returns == TypeRef("Account")
        assert [a.name for a in create.arguments] == ["username", "password"]
        assert [t.name for t in create.throws] == ["exists"]
        assert create.doc.description == "Create a new account"
        assert create.doc.tag("rest") == ("POST /accounts",)
        # Unaudited documents carry no REST binding yet.
        assert create.rest is None


class TestSyntax:
    def test_auto_increment_enum(self) -> None:
        doc = parse_idl("enum E { A, B = 10, C; D }")
        e = doc.type("E")
        assert e is not None
        assert [v.value for v in e.values] == [0, 10, 11, 12]

    def test_containers(self) -> None:
        doc = parse_idl("struct S { 1: map<string, list<i32>> m, 2: set<S> s }")
        s = doc.type("S")
        assert s is not None
        m = s.field("m")
        assert m is not None
        assert str(m.type) == "map<string, list<i32>>"
        assert [r.name for r in s.references()] == ["S"]

    def test_defaults_and_requiredness(self) -> None:
        doc = parse_idl(
            'struct S { 1: optional i32 a, 2: i32 b = 5, 3: string c = "x", 4: i32 d }'
        )
        s = doc.type("S")
        assert s is not None
        a, b, c, d = s.fields
        assert (a.required, b.required, c.required, d.required) == (False, False, False, True)
        assert (b.default, c.default) == (5, "x")
        assert b.has_default and not d.has_default

    def test_fields_without_ids(self) -> None:
        doc = parse_idl("struct S { i32 a; string b }")
        s = doc.type("S")
        assert s is not None
        assert [f.id for f in s.fields] == [None, None]

    def test_annotations_are_skipped(self) -> None:
        doc = parse_idl('struct S { 1: i32 a (deprecated = "yes") } (final = "true")')
        s = doc.type("S")
        assert s is not None
        assert [f.name for f in s.fields] == ["a"]

    def test_constants(self) -> None:
        doc = parse_idl('const list<i32> L = [1, 2, 3]\nconst map<string, i32> M = {"a": 1}')
        assert [c.value for c in doc.constants] == [[1, 2, 3], {"a": 1}]
        assert doc.order == ("L", "M")

    def test_includes_and_star_namespace(self) -> None:
        doc = parse_idl('include "shared.thrift"\ncpp_include "x.h"\nnamespace * acme')
        assert doc.includes == ("shared.thrift",)
        assert doc.namespaces == {"*": "acme"}

    def test_oneway_and_extends(self) -> None:
        doc = parse_idl("service Base {}\nservice Child extends Base { oneway void ping() }")
        child = doc.service("Child")
        assert child is not None
        assert child.extends == "Base"
        ping = child.method("ping")
        assert ping is not None
        assert ping.oneway
        assert ping.returns.is_void

    def test_union_and_exception_kinds(self) -> None:
        doc = parse_idl("union U { 1: i32 a, 2: string b }\nexception E { 1: string msg }")
        assert [t.kind for t in doc.types] == [DefinitionKind.UNION, DefinitionKind.EXCEPTION]

    def test_resolve_typedef_chain(self) -> None:
        doc = parse_idl("typedef i64 Id\ntypedef Id AccountId")
        assert doc.resolve(TypeRef("AccountId")) == TypeRef("i64")


class TestErrors:
    def test_missing_brace(self) -> None:
        with pytest.raises(IdlParseError) as exc_info:
            parse_idl("struct A {\n  1: i32 a\n", source="bad.thrift")
        err = exc_info.value
        assert err.source == "bad.thrift"
        assert err.line == 3
        assert "bad.thrift:3" in str(err)

    def test_unknown_keyword(self) -> None:
        with pytest.raises(IdlParseError, match="Unknown definition keyword 'structure'"):
            parse_idl("structure A {}")

    def test_lex_error_is_parse_error(self) -> None:
        with pytest.raises(IdlParseError) as exc_info:
            parse_idl("struct A { 1: i32 a @ }")
        assert exc_info.value.code == "IDL_PARSE_ERROR"
        assert exc_info.value.detail["column"] == 21

    def test_enum_value_must_be_integer(self) -> None:
        with pytest.raises(IdlParseError, match="integer enum value"):
            parse_idl('enum E { A = "x" }')
