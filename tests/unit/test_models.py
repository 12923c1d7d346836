# SPDX-License-Identifier: MIT
"""Tests for the core data models."""

import pytest
from pydantic import ValidationError

from edge_replica.models import (
    Credentials,
    DatabaseOptions,
    DatabaseRecord,
    PrefixBootstrap,
    QueryBootstrap,
    QueryResult,
)


class TestCredentials:
    """Test cases for Credentials."""

    def test_credentials_are_frozen(self):
        credentials = Credentials(url="libsql://notes.turso.io", auth_token="jwt")

        with pytest.raises(ValidationError):
            credentials.url = "libsql://other"  # type: ignore[misc]

    def test_credentials_equality(self):
        assert Credentials(url="libsql://a", auth_token="t") == Credentials(
            url="libsql://a", auth_token="t"
        )


class TestDatabaseRecord:
    """Test cases for DatabaseRecord.from_api."""

    def test_platform_capitalized_keys(self):
        record = DatabaseRecord.from_api(
            {"Name": "notes", "Hostname": "notes-acme.turso.io", "group": "edge"}
        )

        assert record.name == "notes"
        assert record.hostname == "notes-acme.turso.io"
        assert record.group == "edge"

    def test_lowercase_keys(self):
        record = DatabaseRecord.from_api({"name": "notes", "hostname": "h.turso.io"})

        assert record.hostname == "h.turso.io"
        assert record.group is None

    def test_missing_hostname(self):
        record = DatabaseRecord.from_api({"Name": "notes", "Hostname": ""})

        assert record.hostname is None


class TestBootstrapStrategies:
    """Test cases for bootstrap strategy parsing."""

    def test_prefix_default_length(self):
        assert PrefixBootstrap().length == 128 * 1024

    def test_prefix_length_must_be_positive(self):
        with pytest.raises(ValidationError):
            PrefixBootstrap(length=0)

    def test_query_requires_text(self):
        with pytest.raises(ValidationError):
            QueryBootstrap(query="")

    def test_discriminated_union_from_dict(self):
        options = DatabaseOptions.model_validate(
            {
                "partial_sync": True,
                "bootstrap_strategy": {"kind": "query", "query": "SELECT * FROM notes"},
            }
        )

        assert options.bootstrap_strategy == QueryBootstrap(query="SELECT * FROM notes")

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            DatabaseOptions.model_validate(
                {"bootstrap_strategy": {"kind": "suffix", "length": 10}}
            )


class TestDatabaseOptions:
    """Test cases for DatabaseOptions."""

    def test_defaults(self):
        options = DatabaseOptions()

        assert options.partial_sync is None
        assert options.bootstrap_strategy is None
        assert options.group is None

    def test_full_sync_has_no_bootstrap(self):
        options = DatabaseOptions(bootstrap_strategy=PrefixBootstrap(length=10))

        assert options.resolve_bootstrap() is None

    def test_partial_sync_defaults_to_prefix(self):
        options = DatabaseOptions(partial_sync=True)

        assert options.resolve_bootstrap() == PrefixBootstrap(length=128 * 1024)
        assert options.resolve_bootstrap(4096) == PrefixBootstrap(length=4096)

    def test_partial_sync_uses_explicit_strategy(self):
        strategy = QueryBootstrap(query="SELECT 1")
        options = DatabaseOptions(partial_sync=True, bootstrap_strategy=strategy)

        assert options.resolve_bootstrap(4096) == strategy


class TestQueryResult:
    """Test cases for QueryResult."""

    def test_empty_result(self):
        result = QueryResult()

        assert result.columns == []
        assert result.rows == []

    def test_model_dump(self):
        result = QueryResult(columns=["id", "body"], rows=[[1, "hi"]])

        assert result.model_dump() == {"columns": ["id", "body"], "rows": [[1, "hi"]]}
