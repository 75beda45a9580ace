"""Named data sources loaded from a TOML file."""

from pathlib import Path
from tomllib import load
from typing import NotRequired, TypedDict

SQLITE_EXTENSIONS = {".sqlite", ".db", ".sqlite3"}

CONFIG_FILE = Path("dbdelta.toml")


class SourceConfig(TypedDict):
    """Location of a data source and the tables to look at."""

    url: str
    schema: NotRequired[str]
    tables: NotRequired[list[str]]


class Config(TypedDict):
    """Content of a configuration file."""

    sources: dict[str, SourceConfig]


def load_config(location: Path = CONFIG_FILE) -> Config:
    """Load the configuration file, empty when it does not exist."""
    if not location.exists():
        return {"sources": {}}
    with location.open("rb") as f:
        sources: dict[str, SourceConfig] = load(f).get("sources", {})
    for name, source in sources.items():
        if "url" not in source:
            msg = f"Source '{name}' in {location} has no url"
            raise ValueError(msg)
    return {"sources": sources}


def resolve_source(config: Config, name_or_url: str) -> SourceConfig:
    """Return a configured source, or a source for a URL or a SQLite file."""
    if source := config["sources"].get(name_or_url):
        return source
    if "://" in name_or_url:
        return {"url": name_or_url}
    if Path(name_or_url).suffix.lower() in SQLITE_EXTENSIONS:
        return {"url": f"sqlite:///{name_or_url}"}
    msg = f"Unknown source: {name_or_url}"
    raise ValueError(msg)
