from pathlib import Path

from rastergraph.core.hashing import compute_bytes_digest, compute_file_digest


def test_compute_bytes_digest_sha256() -> None:
    assert (
        compute_bytes_digest(b"abc")
        == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    )


def test_file_digest_matches_bytes_digest(tmp_path: Path) -> None:
    path = tmp_path / "empty.bin"
    path.write_bytes(b"")
    assert (
        compute_file_digest(path)
        == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    )
