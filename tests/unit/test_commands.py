from matchfeed.core.commands import (
    MalformedCommand,
    ReadHistoryCommand,
    SearchCommand,
    SetFilterCommand,
    extract_fallback_command,
    parse_command,
)


def test_plain_text_is_not_a_command() -> None:
    assert parse_command("Sure, happy to help with interview prep.") is None


def test_search_command_takes_first_quoted_argument() -> None:
    assert parse_command('CALL: FETCH_AND_SEARCH("Python")') == SearchCommand(term="Python")
    assert parse_command('CALL: FETCH_AND_SEARCH("Go", "ignored")') == SearchCommand(term="Go")


def test_history_command_needs_no_arguments() -> None:
    assert parse_command("CALL: GET_APPLICATIONS()") == ReadHistoryCommand()


def test_filter_command_reads_field_then_value() -> None:
    parsed = parse_command('Okay. CALL: UPDATE_FILTER("type", "Internship")')
    assert parsed == SetFilterCommand(field="type", value="Internship")


def test_wrong_argument_count_is_malformed() -> None:
    assert isinstance(parse_command('CALL: UPDATE_FILTER("location")'), MalformedCommand)
    assert isinstance(parse_command("CALL: FETCH_AND_SEARCH()"), MalformedCommand)


def test_unknown_tool_is_malformed() -> None:
    parsed = parse_command('CALL: DELETE_EVERYTHING("now")')
    assert isinstance(parsed, MalformedCommand)
    assert "unknown tool" in parsed.reason


def test_fallback_drops_stop_words() -> None:
    assert extract_fallback_command("search for Go jobs") == SearchCommand(term="Go")
    assert extract_fallback_command("find me Python jobs") == SearchCommand(term="Python")


def test_fallback_defaults_when_only_stop_words() -> None:
    assert extract_fallback_command("Find me jobs!") == SearchCommand(term="Developer")


def test_fallback_without_search_keyword_has_no_command() -> None:
    assert extract_fallback_command("what did I apply to?") is None


def test_fallback_heuristic_is_first_non_stop_word_only() -> None:
    # known-weak heuristic: articles are not stop words
    assert extract_fallback_command("find me a Python role") == SearchCommand(term="a")
