"""Tests for reading and rewriting files on disk."""

import errno
import os
import stat

import pytest

from shvar.constants import MAX_FILE_SIZE
from shvar.models import Assignment, RawLine
from shvar.storage import (
    ShvarFileError,
    ShvarFileNotFoundError,
    create_file,
    neutralized_lines,
    open_file,
    parse_content,
    render_lines,
    write_file,
)

IFCFG = """\
# Generated by hand
TYPE=Ethernet

  BOOTPROTO=dhcp
NAME="my nic"
ONBOOT=yes
"""


class TestParseContent:
    def test_trailing_newline_does_not_add_a_line(self):
        """
        Given content ending in a newline
        When it is parsed
        Then no empty record is added at the end
        """
        assert parse_content(b"A=1\n") == [Assignment("A", "A", "1")]

    def test_last_line_without_newline_is_kept(self):
        """
        Given content whose last line has no newline
        When it is parsed
        Then that line is still a record
        """
        assert parse_content(b"# c\nA=1") == [RawLine("# c"), Assignment("A", "A", "1")]

    def test_blank_lines_are_kept(self):
        """
        Given content with blank lines
        When it is parsed
        Then each blank line becomes a RawLine
        """
        assert parse_content(b"\n\nA=1\n\n") == [
            RawLine(""),
            RawLine(""),
            Assignment("A", "A", "1"),
            RawLine(""),
        ]

    def test_empty_content(self):
        """
        Given empty content
        When it is parsed
        Then there are no records
        """
        assert parse_content(b"") == []


class TestOpenFile:
    def test_missing_file_raises_not_found(self, tmp_path):
        """
        Given a path that does not exist
        When open_file is called
        Then ShvarFileNotFoundError is raised with errno ENOENT
        """
        path = tmp_path / "missing"
        with pytest.raises(ShvarFileNotFoundError) as info:
            open_file(path)
        assert info.value.errno == errno.ENOENT
        assert info.value.path == str(path)
        assert "Could not read file" in str(info.value)

    def test_reads_values_and_keeps_no_descriptor(self, ifcfg):
        """
        Given an existing file
        When open_file is called
        Then values are readable and no descriptor is held
        """
        doc = open_file(ifcfg(IFCFG))
        assert doc.get("NAME") == "my nic"
        assert doc.get("BOOTPROTO") == "dhcp"
        assert doc.fd is None
        assert doc.modified is False

    def test_directory_is_an_error(self, tmp_path):
        """
        Given a path that is a directory
        When open_file is called
        Then ShvarFileError is raised
        """
        with pytest.raises(ShvarFileError):
            open_file(tmp_path)

    def test_file_over_size_limit_is_rejected(self, ifcfg):
        """
        Given a file one byte larger than the limit
        When open_file or create_file is called
        Then ShvarFileError with EFBIG is raised
        """
        path = ifcfg(b"#" * (MAX_FILE_SIZE + 1))
        with pytest.raises(ShvarFileError) as info:
            open_file(path)
        assert info.value.errno == errno.EFBIG
        with pytest.raises(ShvarFileError):
            create_file(path)

    def test_file_at_size_limit_is_read(self, ifcfg):
        """
        Given a file exactly at the size limit
        When open_file is called
        Then it is read
        """
        doc = open_file(ifcfg(b"#" * MAX_FILE_SIZE))
        assert len(doc.records) == 1


class TestCreateFile:
    def test_missing_file_gives_empty_document(self, tmp_path):
        """
        Given a path that does not exist
        When create_file is called
        Then an empty document is returned and no file is created yet
        """
        path = tmp_path / "ifcfg-new"
        doc = create_file(path)
        assert doc.records == []
        assert doc.fd is None
        assert not path.exists()

    def test_existing_file_keeps_descriptor(self, ifcfg):
        """
        Given a writable file
        When create_file is called
        Then the document holds a descriptor until closed
        """
        with create_file(ifcfg(IFCFG)) as doc:
            assert doc.fd is not None
            assert doc.get("TYPE") == "Ethernet"
        assert doc.fd is None


class TestWriteFile:
    def test_untouched_lines_are_preserved(self, ifcfg):
        """
        Given a file with comments, blank lines and indentation
        When one value is changed and written
        Then every other line is byte-for-byte the same
        """
        path = ifcfg(IFCFG)
        with create_file(path) as doc:
            doc.set("ONBOOT", "no")
            write_file(doc)
        assert path.read_text() == IFCFG.replace("ONBOOT=yes", "ONBOOT=no")

    def test_new_file_uses_mode(self, tmp_path):
        """
        Given a path that does not exist
        When a value is set and written with mode 0600
        Then the file is created with those permissions
        """
        path = tmp_path / "ifcfg-new"
        with create_file(path) as doc:
            doc.set("NAME", "a b")
            write_file(doc, 0o600)
        assert path.read_text() == 'NAME="a b"\n'
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    def test_renamed_document_writes_to_new_path(self, ifcfg, tmp_path):
        """
        Given a document opened read-only whose file_name is changed
        When it is written
        Then the new path receives the content and the old file is untouched
        """
        old = ifcfg(IFCFG)
        doc = open_file(old)
        doc.file_name = str(tmp_path / "ifcfg-eth1")
        with doc:
            doc.set("DEVICE", "eth1")
            write_file(doc)

        assert (tmp_path / "ifcfg-eth1").read_text() == IFCFG + "DEVICE=eth1\n"
        assert old.read_text() == IFCFG

    def test_duplicates_collapse(self, ifcfg):
        """
        Given a key assigned twice
        When it is set and written
        Then the file holds one assignment with the new value
        """
        path = ifcfg("A=1\n# keep\nA=2\n")
        with create_file(path) as doc:
            doc.set("A", "3")
            write_file(doc)
        assert path.read_text() == "# keep\nA=3\n"

    def test_deleted_keys_are_omitted(self, ifcfg):
        """
        Given a file with two keys
        When one is unset and the file written
        Then its line disappears
        """
        path = ifcfg("A=1\nB=2\n")
        with create_file(path) as doc:
            doc.unset("A")
            write_file(doc)
        assert path.read_text() == "B=2\n"

    def test_unknown_commands_are_neutralized(self, ifcfg):
        """
        Given a line the shell would execute but that is not an assignment
        When the file is written
        Then the line is commented out with the marker
        """
        path = ifcfg("export PATH=/bin\nFOO=bar\n")
        with create_file(path) as doc:
            doc.set("FOO", "baz")
            write_file(doc)
        assert path.read_text() == "#NM: export PATH=/bin\nFOO=baz\n"

    def test_malformed_value_is_neutralized(self, ifcfg):
        """
        Given an assignment with an unterminated quote
        When the file is written
        Then an empty assignment is followed by the original line commented out
        """
        path = ifcfg('FOO="bad\n')
        with create_file(path) as doc:
            doc.set_modified()
            write_file(doc)
        assert path.read_text() == 'FOO=\n#NM: FOO="bad\n'

    def test_malformed_indented_value_keeps_original_text(self, ifcfg):
        """
        Given an indented malformed assignment
        When the file is written
        Then the commented-out line keeps the original indentation
        """
        path = ifcfg("  FOO=a|b\n")
        with create_file(path) as doc:
            doc.set_modified()
            write_file(doc)
        assert path.read_text() == "FOO=\n#NM:   FOO=a|b\n"

    def test_unmodified_document_is_not_written(self, ifcfg):
        """
        Given a document with no changes whose file has been removed
        When write_file is called
        Then the file is not recreated
        """
        path = ifcfg("A=1\n")
        doc = open_file(path)
        path.unlink()
        write_file(doc)
        assert not path.exists()

    def test_write_clears_modified(self, ifcfg):
        """
        Given a modified document
        When it is written
        Then modified is False afterwards and a second write is a no-op
        """
        path = ifcfg("A=1\n")
        with create_file(path) as doc:
            doc.set("A", "2")
            write_file(doc)
            assert doc.modified is False
            path.write_text("changed elsewhere\n")
            write_file(doc)
        assert path.read_text() == "changed elsewhere\n"

    def test_shorter_content_truncates(self, ifcfg):
        """
        Given a long value
        When it is replaced with a short one
        Then no trace of the old content remains
        """
        path = ifcfg("A=" + "x" * 500 + "\n")
        with create_file(path) as doc:
            doc.set("A", "y")
            write_file(doc)
        assert path.read_text() == "A=y\n"

    def test_empty_value_is_written(self, ifcfg):
        """
        Given FOO= in the file
        When another key is changed and the file written
        Then FOO= is still present
        """
        path = ifcfg("FOO=\nBAR=1\n")
        with create_file(path) as doc:
            assert doc.get_value("FOO") == ""
            doc.set("BAR", "2")
            write_file(doc)
        assert path.read_text() == "FOO=\nBAR=2\n"

    def test_non_utf8_bytes_are_preserved(self, ifcfg):
        """
        Given a comment containing bytes that are not UTF-8
        When the file is rewritten
        Then those bytes are unchanged
        """
        path = ifcfg(b"# caf\xe9\nA=1\n")
        with create_file(path) as doc:
            doc.set("A", "2")
            write_file(doc)
        assert path.read_bytes() == b"# caf\xe9\nA=2\n"

    def test_missing_final_newline_is_added(self, ifcfg):
        """
        Given a file whose last line has no newline
        When it is rewritten
        Then every line ends in a newline
        """
        path = ifcfg("A=1\nB=2")
        with create_file(path) as doc:
            doc.set("A", "3")
            write_file(doc)
        assert path.read_text() == "A=3\nB=2\n"

    def test_unwritable_location_raises(self, tmp_path):
        """
        Given a path inside a directory that does not exist
        When a modified document is written
        Then ShvarFileError is raised
        """
        doc = create_file(tmp_path / "nope" / "ifcfg-x")
        doc.set("A", "1")
        with pytest.raises(ShvarFileError, match="open for writing"):
            write_file(doc)


class TestNeutralizedLines:
    def test_lists_lines_that_would_change(self, ifcfg):
        """
        Given a file with a command and a malformed value
        When neutralized_lines is called
        Then both are listed as they currently read
        """
        doc = open_file(ifcfg("# ok\nexport X=1\nA='x\n  \nB=ok\n"))
        assert neutralized_lines(doc) == ["export X=1", "A='x"]

    def test_clean_file_lists_nothing(self, ifcfg):
        """
        Given a file with only comments, blanks and valid assignments
        When neutralized_lines is called
        Then it returns an empty list
        """
        assert neutralized_lines(open_file(ifcfg(IFCFG))) == []

    def test_render_lines_matches_write(self, ifcfg):
        """
        Given a file with a command line
        When render_lines is called
        Then it yields the marked line without newlines
        """
        doc = open_file(ifcfg("ls\nA=1\n"))
        assert list(render_lines(doc)) == ["#NM: ls", "A=1"]
