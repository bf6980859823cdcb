# tests/core/test_prompt_engine.py
from gptcoder.core.models import SourceFile
from gptcoder.core.prompt_engine import (PROMPT_TEMPLATE, render_prompt, template_overhead_tokens,
                                         template_skeleton)
from gptcoder.core.token_counter import count_tokens, DEFAULT_ENCODING

PREAMBLE = (
    "The following text is a Git repository with code. The structure of the text is sections that begin with ----, "
    "followed by a single line containing the file path and file name, followed by a variable amount of lines "
    "containing the file contents. The text representing the repository ends when the symbols --END-- are "
    "encountered. Any further text beyond --END-- is meant to be interpreted as instructions using the "
    "aforementioned code as context."
)


def test_single_file_prompt_matches_template_exactly():
    files = [SourceFile(path="a.txt", name="a.txt", content="hello")]
    assert render_prompt(files, "do X") == f"{PREAMBLE}\n----\na.txt\nhello\n--END--\ndo X"


def test_empty_working_set_and_instruction():
    assert render_prompt([], "") == f"{PREAMBLE}\n\n--END--\n"


def test_sections_keep_order_and_multiline_content():
    files = [
        SourceFile(path="src/b.py", name="b.py", content="import os\nprint(os.sep)"),
        SourceFile(path="a.md", name="a.md", content="# Title\n"),
    ]
    expected = (f"{PREAMBLE}\n"
                "----\nsrc/b.py\nimport os\nprint(os.sep)\n"
                "----\na.md\n# Title\n\n"
                "--END--\nexplain")
    assert render_prompt(files, "explain") == expected


def test_placeholder_text_is_emitted_verbatim():
    files = [SourceFile(path="t.txt", name="t.txt", content="$INSTRUCTION$ and $&")]
    prompt = render_prompt(files, "keep $GIT_REPO_FILES$ literal")
    assert prompt.endswith("----\nt.txt\n$INSTRUCTION$ and $&\n--END--\nkeep $GIT_REPO_FILES$ literal")


def test_render_is_idempotent():
    files = [SourceFile(path="x.py", name="x.py", content="x = 1\n")]
    assert render_prompt(files, "go") == render_prompt(files, "go")


def test_template_skeleton_and_overhead():
    assert "$" not in template_skeleton()
    assert template_skeleton() == f"{PREAMBLE}\n\n--END--\n"
    assert PROMPT_TEMPLATE.startswith(PREAMBLE)
    assert template_overhead_tokens(DEFAULT_ENCODING) == count_tokens(template_skeleton(), DEFAULT_ENCODING)
    assert template_overhead_tokens(DEFAULT_ENCODING) > 0
