import logging

import pytest
from mutagen.id3 import COMM, ID3, TIT2, TPE1, TXXX

import id3_tool
from id3_tool import ID3ToolError, split_key


@pytest.fixture
def untagged_file(tmp_path):
    path = tmp_path / "blank.mp3"
    path.write_bytes(b"")
    return path


@pytest.fixture
def tagged_file(untagged_file):
    tags = ID3()
    tags.add(TIT2(encoding=3, text=["Title"]))
    tags.add(TPE1(encoding=3, text=["Artist", "Guest"]))
    tags.add(TXXX(encoding=3, desc="RATING", text=["4"]))
    tags.add(COMM(encoding=3, lang="deu", desc="", text=["Kommentar"]))
    tags.save(str(untagged_file))
    return untagged_file


def run(*argv):
    return id3_tool.main([str(a) for a in argv])


class TestGet:
    def test_get_text_frame(self, tagged_file, capsys):
        assert run("--get", "TIT2", tagged_file) == 0
        assert capsys.readouterr().out == "Title\n"

    def test_multiple_values_use_delimiter(self, tagged_file, capsys):
        assert run("--get", "TIT2", "--get", "tpe1", "-d", "|", tagged_file) == 0
        assert capsys.readouterr().out == "Title|Artist/Guest\n"

    def test_null_delimited_output(self, tagged_file, capsys):
        run("--get", "TIT2", "--get", "TXXX:RATING", "-0", tagged_file)
        assert capsys.readouterr().out == "Title\x004\n"

    def test_get_user_text_by_description(self, tagged_file, capsys):
        run("--get", "TXXX:RATING", "--get", "TXXX:MISSING", tagged_file)
        assert capsys.readouterr().out == "4\n"

    def test_comment_first_matches_any_language(self, tagged_file, capsys):
        run("--get", "COMM::first", "--get", "COMM::eng", tagged_file)
        assert capsys.readouterr().out == "Kommentar\n"

    def test_without_options_prints_every_frame(self, tagged_file, capsys):
        assert run(tagged_file) == 0
        out = capsys.readouterr().out
        assert "TIT2: Title" in out
        assert "TXXX:RATING: 4" in out
        assert "COMM::deu: Kommentar" in out


class TestSet:
    def test_set_text_and_user_frames(self, tagged_file):
        assert run("--set", "TIT2=New Title", "--set", "TXXX:RATING=5", tagged_file) == 0
        tags = ID3(str(tagged_file))
        assert tags["TIT2"].text == ["New Title"]
        assert tags["TXXX:RATING"].text == ["5"]

    def test_set_comment_defaults_to_english(self, tagged_file):
        run("--set", "COMM:note=hello", tagged_file)
        tags = ID3(str(tagged_file))
        assert tags["COMM:note:eng"].text == ["hello"]
        assert tags["COMM::deu"].text == ["Kommentar"]

    def test_get_runs_before_set(self, tagged_file, capsys):
        run("--get", "TIT2", "--set", "TIT2=Changed", tagged_file)
        assert capsys.readouterr().out == "Title\n"
        assert ID3(str(tagged_file))["TIT2"].text == ["Changed"]

    def test_set_creates_tag_on_untagged_file(self, untagged_file):
        assert run("--set", "TALB=Album", untagged_file) == 0
        assert ID3(str(untagged_file))["TALB"].text == ["Album"]

    def test_set_read_only_frame_fails(self, tagged_file):
        assert run("--set", "APIC=cover", tagged_file) == 1

    def test_set_without_value_fails(self, tagged_file):
        assert run("--set", "TIT2", tagged_file) == 1


class TestErrors:
    def test_untagged_file_cannot_be_read(self, untagged_file, caplog):
        with caplog.at_level(logging.ERROR):
            assert run("--get", "TIT2", untagged_file) == 1
        assert "No ID3 tag" in caplog.text

    def test_missing_file_fails_but_others_are_processed(self, tagged_file, tmp_path, capsys):
        assert run("--get", "TIT2", tmp_path / "missing.mp3", tagged_file) == 1
        assert capsys.readouterr().out == "Title\n"

    def test_unknown_frame_fails(self, tagged_file):
        assert run("--get", "ZZZZ", tagged_file) == 1

    @pytest.mark.parametrize("spec", ["NOPE", "TIT2:extra", "TXXX:a:b", "COMM:a:b:c"])
    def test_split_key_rejects_bad_keys(self, spec):
        with pytest.raises(ID3ToolError):
            split_key(spec)

    @pytest.mark.parametrize("spec,expected", [("tit2", ("TIT2", [])), ("TXXX:RATING", ("TXXX", ["RATING"])), ("COMM::eng", ("COMM", ["", "eng"]))])
    def test_split_key(self, spec, expected):
        assert split_key(spec) == expected


class TestListFrames:
    def test_list_frames_includes_text_and_writable_frames(self, capsys):
        assert run("-L") == 0
        ids = [line.split("\t")[0] for line in capsys.readouterr().out.splitlines()]
        assert {"TIT2", "TALB", "TXXX", "COMM"} <= set(ids)
        assert "APIC" not in ids
        assert ids == sorted(ids)
