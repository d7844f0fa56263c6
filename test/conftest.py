import typing as ty

import pytest

from vtablegen.documents import Documents
from vtablegen.generator import parse_schema
from vtablegen.schema import Schema

MONSTER = """\
namespace MyGame;

/// Colors a monster can have
enum Color : byte { Red = 0, Green, Blue = 2 }

struct Vec3 {
  x: float;
  y: float;
  z: float;
}

/// A monster
table Monster {
  /// Hit points
  hp: short = 100;
  name: string (required);
  color: Color = Blue;
  mana: int = 150 (deprecated);
  speed: float = 1.5;
}

root_type Monster;
file_identifier "MONS";
"""


def schema_from_text(text: str, path: str = "monster.fbs") -> ty.Optional[Schema]:
    documents = Documents()
    documents.add_root(path, text)
    return parse_schema(documents)


@pytest.fixture
def load() -> ty.Callable[..., ty.Optional[Schema]]:
    return schema_from_text


@pytest.fixture
def monster_schema() -> Schema:
    schema = schema_from_text(MONSTER)
    assert schema is not None
    return schema


@pytest.fixture
def monster_fbs(tmp_path):
    path = tmp_path / "monster.fbs"
    path.write_text(MONSTER)
    return path
