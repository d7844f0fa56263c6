import os
import typing as ty

Document = ty.NamedTuple(
    "Document", [("id", int), ("name", str), ("path", str), ("content", str)]
)


class Documents:
    by_name: ty.Dict[str, Document]
    by_id: ty.List[Document]
    root: Document

    def __init__(self) -> None:
        self.by_name = {}
        self.by_id = []

    def add_root(self, path: str, data: str) -> Document:
        name = os.path.splitext(os.path.basename(path))[0]
        self.root = Document(0, name, path, data)
        self.by_name[name] = self.root
        self.by_id = [self.root]
        return self.root

    def read_root(self, path: str) -> Document:
        with open(path, "r") as f:
            data = f.read()
        return self.add_root(path, data)
