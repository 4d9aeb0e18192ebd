from xlsx_converter.dialect import infer_delimiter, parse_row, sample_lines, score_delimiter


def test_parse_row_trims_cells():
    assert parse_row("a, b ,c", ",") == ["a", "b", "c"]


def test_parse_row_keeps_empty_cells_as_strings():
    assert parse_row("a,,c,", ",") == ["a", "", "c", ""]


def test_parse_row_leading_empty_tab_cell():
    assert parse_row("\tx\ty", "\t") == ["", "x", "y"]


def test_parse_row_quoted_delimiter():
    assert parse_row('"a,b",c', ",") == ["a,b", "c"]


def test_parse_row_escaped_quote():
    assert parse_row('"say ""hi""",x', ",") == ['say "hi"', "x"]


def test_parse_row_single_quotes():
    assert parse_row("'x;y';z", ";") == ["x;y", "z"]
    # the other quote character is literal inside a span
    assert parse_row('"it\'s",1', ",") == ["it's", "1"]


def test_parse_row_unterminated_quote_is_best_effort():
    # best-effort split, never raises
    assert parse_row('"a,"b,c', ",") == ["a,b", "c"]
    assert parse_row('x,"open ended, still', ",") == ["x", "open ended, still"]


def test_infer_comma():
    assert infer_delimiter("name,age\nAlice,30\nBob,25") == ","


def test_infer_tab():
    assert infer_delimiter("A\tB\tC\n1\t2\t3") == "\t"


def test_infer_semicolon_and_pipe():
    assert infer_delimiter("a;b;c\n1;2;3\n4;5;6") == ";"
    assert infer_delimiter("a|b\n1|2") == "|"


def test_infer_ignores_delimiters_inside_quotes():
    text = 'name;note\n"x";"a,b,c"\n"y";"d,e"'
    assert infer_delimiter(text) == ";"


def test_infer_defaults_to_comma():
    assert infer_delimiter("hello\nworld") == ","
    assert infer_delimiter("") == ","


def test_infer_tie_prefers_earlier_candidate():
    assert infer_delimiter("a\tb,c") == "\t"


def test_infer_only_samples_prefix():
    head = "\n".join(["a,b"] * 10)
    tail = "\n".join(["a;b;c;d;e;f"] * 50)
    assert infer_delimiter(head + "\n" + tail) == ","


def test_infer_is_deterministic():
    text = "x|y,z\n1|2,3\n4|5"
    assert len({infer_delimiter(text) for _ in range(20)}) == 1


def test_sample_skips_blank_lines():
    assert sample_lines("\n\na\n  \nb\n", limit=10) == ["a", "b"]


def test_score_relaxes_consistency_for_wide_headers():
    wide = ",".join(["h"] * 12)
    lines = [wide, "1,2", "3,4"]
    counts = [12, 2, 2]
    expected = (sum(counts) / 3) * 0.8 * 3
    assert score_delimiter(lines, ",") == expected
