from query_parser import parse_query


def test_in_separator():
    parsed = parse_query("dentists in Portland, OR")
    assert parsed.business_type == "dentists"
    assert parsed.location == "Portland, OR"


def test_near_separator():
    parsed = parse_query("coffee shops near Miami")
    assert parsed.business_type == "coffee shops"
    assert parsed.location == "Miami"


def test_no_separator_keeps_whole_query_as_type():
    parsed = parse_query("bookstores")
    assert parsed.business_type == "bookstores"
    assert parsed.location == ""


def test_in_wins_over_near():
    parsed = parse_query("shops in town near river")
    assert parsed.business_type == "shops"
    assert parsed.location == "town near river"


def test_case_insensitive_and_first_occurrence():
    parsed = parse_query("Pizza IN New York in NY")
    assert parsed.business_type == "Pizza"
    assert parsed.location == "New York in NY"


def test_separator_must_be_a_word():
    # "in" inside "Indian" / "Minneapolis" is not a separator
    parsed = parse_query("Indian restaurants near Minneapolis")
    assert parsed.business_type == "Indian restaurants"
    assert parsed.location == "Minneapolis"


def test_empty_query():
    parsed = parse_query("   ")
    assert parsed.business_type == ""
    assert parsed.location == ""
