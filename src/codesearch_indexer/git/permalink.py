"""Permalink generation for indexed files."""

from urllib.parse import quote

from codesearch_indexer.core.models.repository import SourceSystem

UNKNOWN_PERMALINK = "unknown"

# {owner}, {name}, {ref}, {path}
PERMALINK_TEMPLATES: dict[SourceSystem, str] = {
    SourceSystem.GITHUB: "https://github.com/{owner}/{name}/blob/{ref}/{path}",
    SourceSystem.GITLAB: "https://gitlab.com/{owner}/{name}/-/blob/{ref}/{path}",
    SourceSystem.CODEBERG: "https://codeberg.org/{owner}/{name}/src/commit/{ref}/{path}",
}

# Used when a file has no known commit and the link has to follow the branch
BRANCH_TEMPLATES: dict[SourceSystem, str] = {
    SourceSystem.GITHUB: "https://github.com/{owner}/{name}/blob/{ref}/{path}",
    SourceSystem.GITLAB: "https://gitlab.com/{owner}/{name}/-/blob/{ref}/{path}",
    SourceSystem.CODEBERG: "https://codeberg.org/{owner}/{name}/src/branch/{ref}/{path}",
}


def generate_permalink(
    source_system: SourceSystem | str,
    owner: str,
    name: str,
    commit_hash: str,
    path: str,
    branch: str | None = None,
) -> str:
    """Build the external URL of a file at a given commit.

    Without a commit hash the link points at ``branch`` instead. Unknown
    source systems, or neither a commit nor a branch, yield
    ``UNKNOWN_PERMALINK`` rather than an error.
    """
    try:
        system = SourceSystem(source_system)
    except ValueError:
        return UNKNOWN_PERMALINK

    if commit_hash:
        template, ref = PERMALINK_TEMPLATES.get(system), commit_hash
    elif branch:
        template, ref = BRANCH_TEMPLATES.get(system), branch
    else:
        return UNKNOWN_PERMALINK

    if template is None:
        return UNKNOWN_PERMALINK

    return template.format(
        owner=owner,
        name=name,
        ref=quote(ref, safe="/"),
        path=quote(path, safe="/"),
    )
