import shutil
import subprocess

import pytest

DEFAULT_ROWS = ("18", "24", "42", "7E")
BLANK_ROWS = ("00", "00", "00", "00")


def make_glyph(char, rows=DEFAULT_ROWS, name=None, bbx_height=None):
    """One STARTCHAR block; `char` is a character or an integer codepoint."""
    codepoint = char if isinstance(char, int) else ord(char)
    height = len(rows) if bbx_height is None else bbx_height
    return (
        f"STARTCHAR {name or f'U+{codepoint:04X}'}\n"
        f"ENCODING {codepoint}\n"
        "SWIDTH 500 0\n"
        "DWIDTH 8 0\n"
        f"BBX 8 {height} 0 -2\n"
        "BITMAP\n"
        + "".join(f"{row}\n" for row in rows)
        + "ENDCHAR\n"
    )


def make_bdf(glyphs, family="Tamsyn", comments=()):
    header = (
        "STARTFONT 2.1\n"
        + "".join(f"COMMENT {comment}\n" for comment in comments)
        + f"FONT -misc-{family}-medium-r-normal--16-116-100-100-c-80-iso8859-1\n"
        "SIZE 16 100 100\n"
        "FONTBOUNDINGBOX 8 16 0 -4\n"
        "STARTPROPERTIES 4\n"
        f'FAMILY_NAME "{family}"\n'
        'CHARSET_REGISTRY "ISO8859"\n'
        "FONT_ASCENT 12\n"
        "FONT_DESCENT 4\n"
        "ENDPROPERTIES\n"
        f"CHARS {len(glyphs)}\n"
    )
    return header + "".join(glyphs) + "ENDFONT\n"


@pytest.fixture
def glyph():
    return make_glyph


@pytest.fixture
def bdf():
    return make_bdf


@pytest.fixture
def blank():
    return BLANK_ROWS


@pytest.fixture
def git_repo(tmp_path):
    """
    An empty git repository and a `release(tag, files)` helper that commits
    exactly `files` ({name: text}) and tags the commit.
    """
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    repo = tmp_path / "tamsyn"
    repo.mkdir()

    def git(*args):
        subprocess.run(
            [
                "git", "-C", str(repo),
                "-c", "user.name=Test",
                "-c", "user.email=test@example.com",
                "-c", "commit.gpgsign=false",
                *args,
            ],
            check=True,
            capture_output=True,
        )

    git("init", "-q")

    def release(tag, files):
        for path in repo.iterdir():
            if path.is_file():
                path.unlink()
        for name, text in files.items():
            (repo / name).write_bytes(text.encode("latin-1"))
        git("add", "-A")
        git("commit", "-q", "--allow-empty", "-m", tag)
        git("tag", tag)

    return repo, release
