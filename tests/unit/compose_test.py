"""Unit tests for fragment composition."""

import logging

import pytest

from routeql.core.compose import compose_document, compose_documents, fragment_spreads
from routeql.core.documents import DocumentCollection, collect_documents, parse_document
from routeql.errors import FragmentCycleError, MissingFragmentError


def _collection(*sources: str) -> DocumentCollection:
    return collect_documents((f"doc{i}.gql", source) for i, source in enumerate(sources))


class TestFragmentSpreads:
    def test_names_in_source_order_without_duplicates(self) -> None:
        document = parse_document("query Q { a { ...B } c { ...A ...B } }")
        assert fragment_spreads(document) == ["B", "A"]

    def test_no_spreads(self) -> None:
        assert fragment_spreads(parse_document("query Q { a }")) == []


class TestComposeDocument:
    def test_includes_transitive_fragments(self) -> None:
        collection = _collection(
            "query A { ...F1 }",
            "fragment F1 on T { id ...F2 }",
            "fragment F2 on T { name }",
        )

        composed = compose_document(collection.operation("A"), collection)  # type: ignore[arg-type]

        assert composed.definition_names == ["A", "F1", "F2"]

    def test_breadth_first_order(self) -> None:
        collection = _collection(
            "query A { ...F2 ...F1 }",
            "fragment F1 on T { ...F3 }",
            "fragment F2 on T { id }",
            "fragment F3 on T { id }",
        )

        composed = compose_document(collection.operation("A"), collection)  # type: ignore[arg-type]

        assert composed.definition_names == ["A", "F2", "F1", "F3"]

    def test_shared_fragment_appears_once(self) -> None:
        collection = _collection(
            "query A { ...F1 ...F2 }",
            "fragment F1 on T { ...F3 }",
            "fragment F2 on T { ...F3 }",
            "fragment F3 on T { id }",
        )

        composed = compose_document(collection.operation("A"), collection)  # type: ignore[arg-type]

        assert composed.definition_names == ["A", "F1", "F2", "F3"]

    def test_unused_fragments_are_left_out(self) -> None:
        collection = _collection("query A { ...F1 }", "fragment F1 on T { id }", "fragment Other on T { id }")

        composed = compose_document(collection.operation("A"), collection)  # type: ignore[arg-type]

        assert "Other" not in composed.definition_names

    def test_text_is_printable_document(self) -> None:
        collection = _collection("query A { ...F1 }", "fragment F1 on T { id }")

        composed = compose_document(collection.operation("A"), collection)  # type: ignore[arg-type]

        assert "query A" in composed.text
        assert "fragment F1 on T" in composed.text

    def test_missing_fragment(self) -> None:
        collection = _collection("query A { ...F1 }", "fragment F1 on T { ...Missing }")

        with pytest.raises(MissingFragmentError) as excinfo:
            compose_document(collection.operation("A"), collection)  # type: ignore[arg-type]

        assert excinfo.value.fragment == "Missing"
        assert excinfo.value.referenced_by == "F1"

    def test_cycle(self) -> None:
        collection = _collection(
            "query A { ...F1 }",
            "fragment F1 on T { ...F2 }",
            "fragment F2 on T { ...F1 }",
        )

        with pytest.raises(FragmentCycleError) as excinfo:
            compose_document(collection.operation("A"), collection)  # type: ignore[arg-type]

        assert excinfo.value.cycle[0] == excinfo.value.cycle[-1]

    def test_self_spread_is_a_cycle(self) -> None:
        collection = _collection("query A { ...F }", "fragment F on T { id ...F }")

        with pytest.raises(FragmentCycleError) as excinfo:
            compose_document(collection.operation("A"), collection)  # type: ignore[arg-type]

        assert excinfo.value.cycle == ["F", "F"]


class TestComposeDocuments:
    def test_failure_is_limited_to_one_operation(self, caplog: pytest.LogCaptureFixture) -> None:
        collection = _collection("query Good { ...F1 }", "query Bad { ...Nope }", "fragment F1 on T { id }")

        with caplog.at_level(logging.ERROR):
            composed = compose_documents(collection)

        assert list(composed) == ["Good"]
        assert "Bad" in caplog.text
