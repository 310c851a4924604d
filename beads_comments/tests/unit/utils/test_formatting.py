import json

from beads_comments.core.thread_builder import build_threads
from beads_comments.utils.formatting import format_json, format_text, parse_json
from beads_comments.tests.factories import comment, reply_chain, walk


def sample_forest():
    reply = comment(
        "at://bob/c/2",
        "2025-01-15T11:00:00Z",
        reply_to="at://alice/c/1",
        node_id="bd-1",
        handle="bob.test",
        text="Agreed",
    )
    return [
        comment(
            "at://alice/c/1",
            "2025-01-15T10:00:00Z",
            node_id="bd-1",
            display_name="Alice",
            text="Looks good",
            likes=2,
            replies=[reply],
        ),
        comment("at://carol/c/3", "2025-01-14T09:00:00Z", node_id="bd-2", handle="carol.test", text="First", likes=1),
    ]


def test_format_text():
    expected = (
        "[bd-1] Alice @alice.test (2025-01-15T10:00:00Z) [2 likes]\n"
        "  Looks good\n"
        "  [bd-1] ↩ reply · @bob.test (2025-01-15T11:00:00Z)\n"
        "    Agreed\n"
        "\n"
        "[bd-2] @carol.test (2025-01-14T09:00:00Z) [1 like]\n"
        "  First\n"
    )

    assert format_text(sample_forest()) == expected


def test_format_text_orphan_keeps_reply_marker():
    orphan = comment("at://x/c/9", reply_to="at://gone/c/0", node_id="bd-3", text="hi")

    assert format_text([orphan]).startswith("[bd-3] ↩ reply · @alice.test")


def test_format_text_empty():
    assert format_text([]) == "No comments found.\n"


def test_format_json_field_names():
    data = json.loads(format_json(sample_forest()))

    root = data[0]
    assert root["nodeId"] == "bd-1"
    assert root["displayName"] == "Alice"
    assert root["createdAt"] == "2025-01-15T10:00:00Z"
    assert root["likes"] == 2
    assert "replyTo" not in root
    assert root["replies"][0]["replyTo"] == "at://alice/c/1"
    assert "displayName" not in root["replies"][0]
    assert "replies" not in data[1]


def test_format_json_layout():
    output = format_json(sample_forest())

    assert output.endswith("]\n")
    assert output.startswith("[\n  {\n")
    assert "↩" not in output
    assert format_json([]) == "[]\n"


def test_parse_json_restores_forest():
    forest = sample_forest()

    assert parse_json(format_json(forest)) == forest


def test_format_json_layout_matches_json_dumps():
    forest = sample_forest()
    expected = json.dumps([c.to_json_dict() for c in forest], indent=2, ensure_ascii=False) + "\n"

    assert format_json(forest) == expected


def test_format_json_escapes_html_characters():
    note = comment("at://x/c/1", node_id="bd-1", text="a <b> & c\u2028d café")

    output = format_json([note])

    assert '"text": "a \\u003cb\\u003e \\u0026 c\\u2028d café",' in output
    assert parse_json(output)[0].text == "a <b> & c\u2028d café"


def test_deep_reply_chain_renders_and_round_trips():
    forest = build_threads(reply_chain(500))

    text_lines = format_text(forest).splitlines()
    assert len(text_lines) == 1000
    assert text_lines[-2] == " " * 998 + "[test-issue] ↩ reply · @alice.test (2025-01-15T10:00:00.499Z)"
    assert text_lines[-1] == " " * 1000 + "reply <499> & more"

    output = format_json(forest)
    assert output.count('"replies": [') == 499

    parsed = parse_json(output)
    assert [(d, c.uri, c.reply_to, c.text) for d, c in walk(parsed)] == [
        (d, c.uri, c.reply_to, c.text) for d, c in walk(forest)
    ]


def test_to_json_dict_deep_reply_chain():
    data = build_threads(reply_chain(500))[0].to_json_dict()

    depth = 0
    while "replies" in data:
        (data,) = data["replies"]
        depth += 1
    assert depth == 499
    assert data["uri"] == "c499"
