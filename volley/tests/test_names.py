"""
Tests for name handling — sanitization and pasted player lists.
"""

from volley.engine.names import (
    format_player_list,
    parse_player_list,
    sanitize_input,
    validate_player_names,
)


class TestSanitizeInput:

    def test_trims_and_strips_disallowed(self):
        assert sanitize_input("  O'Neil-Smith Jr.  ") == "O'Neil-Smith Jr."
        assert sanitize_input("<b>Ana</b>") == "bAnab"

    def test_keeps_accented_letters(self):
        assert sanitize_input("João Araújo") == "João Araújo"

    def test_caps_length(self):
        assert len(sanitize_input("x" * 100)) == 30
        assert sanitize_input("abcdef", max_length=3) == "abc"

    def test_non_string_gives_empty(self):
        assert sanitize_input(None) == ""
        assert sanitize_input(42) == ""


class TestParsePlayerList:

    def test_splits_on_all_delimiters(self):
        assert parse_player_list("Ana, Bia\nCaio|Duda;Eva") == ["Ana", "Bia", "Caio", "Duda", "Eva"]

    def test_drops_empty_entries(self):
        assert parse_player_list(" ,Ana,, \n;Bia ") == ["Ana", "Bia"]

    def test_dedupes_case_insensitively(self):
        # Last spelling wins, first position is kept
        assert parse_player_list("ana, Bia, ANA") == ["ANA", "Bia"]

    def test_non_string_gives_empty(self):
        assert parse_player_list(None) == []
        assert parse_player_list("") == []


class TestValidatePlayerNames:

    def test_valid_list(self):
        result = validate_player_names(["Ana", "Bia"])
        assert result.valid
        assert result.errors == []
        assert result.cleaned_names == ["Ana", "Bia"]

    def test_empty_list(self):
        result = validate_player_names([])
        assert not result.valid
        assert "No valid player names provided" in result.errors

    def test_too_many_players(self):
        result = validate_player_names([f"P{i}" for i in range(5)], max_players=3)
        assert not result.valid
        assert result.errors == ["Too many players (max: 3, got: 5)"]

    def test_name_too_long(self):
        result = validate_player_names(["Ana", "B" * 12], max_name_length=10)
        assert result.errors == ["Player 2 name too long (max: 10 chars)"]

    def test_special_chars_when_disallowed(self):
        result = validate_player_names(["Ana", "B@b"], allow_special_chars=False)
        assert not result.valid
        assert 'Player "B@b" contains unsupported characters' in result.errors

    def test_special_chars_allowed_by_default(self):
        assert validate_player_names(["B@b"]).valid


class TestFormatPlayerList:

    def test_short_list(self):
        assert format_player_list(["Ana", "Bia"]) == "Ana, Bia"

    def test_truncated_list(self):
        names = [f"P{i}" for i in range(8)]
        assert format_player_list(names, max_display=3) == "P0, P1, P2, +5 more"

    def test_empty(self):
        assert format_player_list([]) == "(no players)"
