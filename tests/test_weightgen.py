import io
import json

import pytest

from ormlkit.weightgen import (
    BenchData,
    TemplateError,
    join,
    main,
    parse_bench_data,
    parse_lines,
    render_template,
    underscore,
)

SAMPLE = [
    {"name": "vested_transfer", "base_weight": 69_000_000, "base_reads": 4, "base_writes": 4},
    {"name": "claim", "base_weight": 31_747_000, "base_reads": 2, "base_writes": 2},
]


def test_underscore_groups_by_three():
    assert underscore(1234567) == "1_234_567"


def test_underscore_short_value_unchanged():
    assert underscore(123) == "123"
    assert underscore("") == ""


@pytest.mark.parametrize("value", [1, 12, 1000, 69000000, 31747000, 2**64 - 1])
def test_underscore_invariants(value):
    result = underscore(value)
    assert result.replace("_", "") == str(value)
    groups = result.split("_")
    assert all(len(group) == 3 for group in groups[1:])
    assert 1 <= len(groups[0]) <= 3


def test_join_list_and_scalar():
    assert join([1, 2, "a"]) == "1 2 a"
    assert join("single") == "single"
    assert join(None) == ""


def test_parse_bench_data_round_trip():
    benchmarks = parse_bench_data(json.dumps(SAMPLE))
    assert [b.name for b in benchmarks] == ["vested_transfer", "claim"]
    assert benchmarks[0].base_weight == 69_000_000
    assert benchmarks[1] == BenchData("claim", 31_747_000, 2, 2)


def test_parse_bench_data_ignores_unknown_fields():
    entry = dict(SAMPLE[0], extra=[1, 2])
    assert parse_bench_data(json.dumps([entry]))[0] == BenchData.from_dict(SAMPLE[0])


@pytest.mark.parametrize(
    "entry",
    [
        {"name": "x", "base_weight": 1, "base_reads": 1},
        {"name": "x", "base_weight": -1, "base_reads": 1, "base_writes": 1},
        {"name": "x", "base_weight": 1.5, "base_reads": 1, "base_writes": 1},
        {"name": "x", "base_weight": 1, "base_reads": 2**32, "base_writes": 1},
        {"name": 5, "base_weight": 1, "base_reads": 1, "base_writes": 1},
        {"name": "x", "base_weight": True, "base_reads": 1, "base_writes": 1},
    ],
)
def test_from_dict_rejects_bad_entries(entry):
    with pytest.raises(ValueError):
        BenchData.from_dict(entry)


def test_parse_bench_data_rejects_non_array():
    with pytest.raises(ValueError):
        parse_bench_data(json.dumps(SAMPLE[0]))
    with pytest.raises(ValueError):
        parse_bench_data("not json")


def test_parse_lines_finds_first_valid_line():
    text = "Running benchmarks...\n{broken\n" + json.dumps(SAMPLE) + "\ntrailing\n"
    assert parse_lines(text) == parse_bench_data(json.dumps(SAMPLE))


def test_parse_lines_returns_none_without_data():
    assert parse_lines("nothing here\nat all\n") is None


def test_render_variable_and_no_escaping():
    assert render_template("{{header}}", {"header": "<a & b>"}) == "<a & b>"
    assert render_template("{{{header}}}", {"header": "x"}) == "x"


def test_render_missing_variable_is_empty():
    assert render_template("[{{missing}}]", {}) == "[]"


def test_render_each_with_helpers():
    benchmarks = parse_bench_data(json.dumps(SAMPLE))
    out = render_template(
        "{{#each benchmarks}}{{name}}:{{underscore base_weight}};{{/each}}",
        {"benchmarks": benchmarks},
    )
    expected = "".join(f"{b.name}:{underscore(b.base_weight)};" for b in benchmarks)
    assert out == expected


def test_render_standalone_block_lines_removed():
    template = "{{#each items}}\n{{this}}\n{{/each}}\n"
    assert render_template(template, {"items": [1, 2]}) == "1\n2\n"


def test_render_if_else_and_unless():
    template = "{{#if flag}}yes{{else}}no{{/if}}"
    assert render_template(template, {"flag": True}) == "yes"
    assert render_template(template, {"flag": 0}) == "no"
    assert render_template("{{#unless items}}empty{{/unless}}", {"items": []}) == "empty"


def test_render_each_index_and_parent():
    out = render_template(
        "{{#each items}}{{@index}}{{../sep}}{{/each}}", {"items": ["a", "b"], "sep": ","}
    )
    assert out == "0,1,"


def test_render_whitespace_control():
    assert render_template("a  {{~x~}}  b", {"x": "-"}) == "a-b"


def test_render_join_helper_matches_function():
    data = {"words": ["x", "y", "z"]}
    assert render_template("{{join words}}", data) == join(data["words"])


def test_render_comment_is_dropped():
    assert render_template("a{{!-- note }} --}}b{{! other }}c", {}) == "abc"


@pytest.mark.parametrize(
    "template",
    ["{{#each items}}x", "{{/each}}", "{{#each items}}x{{/if}}", "{{unknown a}}", "{{underscore}}"],
)
def test_render_errors(template):
    with pytest.raises(TemplateError):
        render_template(template, {"items": [1]})


def _template_file(tmp_path):
    path = tmp_path / "template.hbs"
    path.write_text("{{header}}{{#each benchmarks}}{{name}}={{underscore base_weight}}\n{{/each}}")
    return path


def test_main_writes_output_file(tmp_path):
    template = _template_file(tmp_path)
    header = tmp_path / "header.txt"
    header.write_text("// header\n")
    out = tmp_path / "weights.rs"
    code = main([json.dumps(SAMPLE), "-t", str(template), "-h", str(header), "-o", str(out)])
    assert code == 0
    expected = render_template(
        template.read_text(),
        {"header": "// header\n", "benchmarks": parse_bench_data(json.dumps(SAMPLE))},
    )
    assert out.read_text() == expected
    assert out.read_text().startswith("// header\n")


def test_main_reads_stdin_and_prints(tmp_path, monkeypatch, capsys):
    template = _template_file(tmp_path)
    monkeypatch.setattr("sys.stdin", io.StringIO("noise\n" + json.dumps(SAMPLE) + "\n"))
    assert main(["-t", str(template)]) == 0
    expected = render_template(
        template.read_text(),
        {"header": "", "benchmarks": parse_bench_data(json.dumps(SAMPLE))},
    )
    assert capsys.readouterr().out == expected + "\n"


def test_main_bad_json_fails(tmp_path, capsys):
    template = _template_file(tmp_path)
    assert main(["not json", "-t", str(template)]) == 1
    assert "Could not parse JSON data" in capsys.readouterr().err


def test_main_missing_header_file_fails(tmp_path):
    template = _template_file(tmp_path)
    missing = tmp_path / "absent.txt"
    assert main([json.dumps(SAMPLE), "-t", str(template), "-h", str(missing)]) == 1


def test_main_requires_template():
    with pytest.raises(SystemExit) as info:
        main([json.dumps(SAMPLE)])
    assert info.value.code == 2