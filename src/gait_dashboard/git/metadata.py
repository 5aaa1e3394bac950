"""Parsers for branch, tag, remote, stash and working tree listings."""

import re

from datetime import datetime, timedelta, timezone
from typing import Optional

from ..errors import RecordParseError
from ..types import Author, Branch, FileChange, Remote, Stash, Tag
from .diff import parse_name_status, parse_numstat
from .history import parse_git_date

TAG_FORMAT = (
    "%(refname:short)|%(objectname:short)|%(objecttype)|%(subject)"
    "|%(taggername)|%(taggeremail)|%(taggerdate:iso)|%(*objectname:short)"
)
TAG_FIELD_COUNT = 8
STASH_FORMAT = "%gd|%H|%ct|%gs"

STASH_REF_RE = re.compile(r"^stash@\{(\d+)\}$")
STASH_BRANCH_RE = re.compile(r"(?:WIP on|On) ([^:]+):")
TAGGER_RE = re.compile(r"^(.+) <(.*)> (\d+) ([+-]\d{4})$")


def parse_branch_line(line: str) -> Branch:
    """Parse one ``branch -v`` line such as ``* main  1a2b3c4 Subject``.

    Raises:
        RecordParseError: If the line has no name and hash
    """
    text = line.strip()
    is_current = text.startswith("*")
    if is_current:
        text = text[1:].strip()

    if text.startswith("("):
        # Detached HEAD: "(HEAD detached at 1a2b3c4) 1a2b3c4 Subject"
        close = text.find(")")
        if close == -1:
            raise RecordParseError(f"unterminated branch name: {line!r}")
        name = text[: close + 1]
        rest = text[close + 1 :].split()
        if not rest:
            raise RecordParseError(f"branch line without hash: {line!r}")
        return Branch(name=name, hash=rest[0], is_current=is_current)

    parts = text.split()
    if len(parts) < 2:
        raise RecordParseError(f"branch line without hash: {line!r}")
    if parts[1] == "->":
        # Symbolic ref such as "remotes/origin/HEAD -> origin/main"
        raise RecordParseError(f"symbolic ref: {line!r}")

    name = parts[0]
    is_remote = name.startswith("remotes/")
    if is_remote:
        name = name[len("remotes/") :]
    return Branch(name=name, hash=parts[1], is_remote=is_remote, is_current=is_current)


def parse_branches(output: str) -> list[Branch]:
    branches = []
    for line in output.split("\n"):
        if not line.strip():
            continue
        try:
            branches.append(parse_branch_line(line))
        except RecordParseError:
            continue
    return branches


def parse_tag_line(line: str) -> Tag:
    """Parse one line produced by TAG_FORMAT.

    Raises:
        RecordParseError: If name, hash and object type are not all present
    """
    parts = line.split("|")
    if len(parts) < 3:
        raise RecordParseError(f"expected at least 3 tag fields: {line!r}")
    if len(parts) > TAG_FIELD_COUNT:
        # The subject is the only free-text field; the last four stay anchored right
        tail = len(parts) - 4
        parts = parts[:3] + ["|".join(parts[3:tail])] + parts[tail:]

    def field(index: int) -> str:
        return parts[index].strip() if len(parts) > index else ""

    object_type = field(2)
    tag = Tag(
        name=field(0),
        hash=field(1),
        type="annotated" if object_type == "tag" else "lightweight",
    )
    if field(3):
        tag.message = field(3)
    if field(4) and field(5):
        tag.tagger = Author(name=field(4), email=field(5).strip("<>"))
    if field(6):
        tag.date = parse_git_date(field(6))
    if tag.type == "annotated" and field(7):
        tag.target_hash = field(7)
    return tag


def parse_tags(output: str) -> list[Tag]:
    tags = []
    for line in output.split("\n"):
        if not line.strip():
            continue
        try:
            tags.append(parse_tag_line(line))
        except RecordParseError:
            continue
    return tags


def parse_remotes(output: str) -> list[Remote]:
    """Merge the fetch and push lines of ``remote -v`` by remote name."""
    remotes: dict[str, Remote] = {}
    for line in output.split("\n"):
        parts = line.split()
        if len(parts) < 3:
            continue
        name, url, kind = parts[0], parts[1], parts[2].strip("()")
        remote = remotes.setdefault(name, Remote(name=name))
        if kind == "fetch":
            remote.fetch_url = url
        elif kind == "push":
            remote.push_url = url
    return list(remotes.values())


def infer_stash_branch(message: str) -> str:
    """Extract the source branch from ``WIP on main: ...`` or ``On main: ...``."""
    match = STASH_BRANCH_RE.search(message)
    return match.group(1) if match else ""


def parse_stashes(output: str) -> list[Stash]:
    """Parse ``stash list`` output produced by STASH_FORMAT."""
    stashes = []
    for position, line in enumerate(e for e in output.split("\n") if e.strip()):
        parts = line.split("|", 3)
        if len(parts) < 4:
            continue
        ref, stash_hash, timestamp, message = parts
        match = STASH_REF_RE.match(ref.strip())
        index = int(match.group(1)) if match else position
        date: Optional[datetime] = None
        if timestamp.strip().isdigit():
            date = datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
        stashes.append(
            Stash(
                index=index,
                message=message,
                branch=infer_stash_branch(message),
                hash=stash_hash.strip(),
                date=date,
            )
        )
    return stashes


def parse_annotated_tag(name: str, cat_file_output: str) -> Tag:
    """Parse ``cat-file -p`` output of an annotated tag object."""
    tag = Tag(name=name, hash="", type="annotated")
    message_lines: list[str] = []
    in_message = False
    for line in cat_file_output.split("\n"):
        if in_message:
            message_lines.append(line)
        elif line == "":
            in_message = True
        elif line.startswith("object "):
            tag.target_hash = line[len("object ") :].strip()
        elif line.startswith("tagger "):
            match = TAGGER_RE.match(line[len("tagger ") :])
            if match:
                tag.tagger = Author(name=match.group(1), email=match.group(2))
                offset = match.group(4)
                sign = -1 if offset.startswith("-") else 1
                minutes = sign * (int(offset[1:3]) * 60 + int(offset[3:5]))
                tag.date = datetime.fromtimestamp(
                    int(match.group(3)),
                    tz=timezone(timedelta(minutes=minutes)),
                )
    tag.message = "\n".join(message_lines).strip() or None
    return tag


def merge_working_tree_changes(
    numstat_output: str, name_status_output: str, prefix: str
) -> list[FileChange]:
    """Combine numstat counts and name-status codes for staged or unstaged work.

    Statuses are prefixed, e.g. ``staged-m`` or ``unstaged-d``.
    """
    statuses = {change.path: change.status for change in parse_name_status(name_status_output)}
    changes = []
    for change in parse_numstat(numstat_output):
        status = statuses.get(change.path, "M")
        change.status = f"{prefix}-{status.lower()}"
        changes.append(change)
    return changes
