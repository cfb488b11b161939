import struct

import pytest

from debugtypes.buildid import (
    BUILD_ID_SIZE,
    build_id_to_hex,
    parse_build_id_notes,
    read_elf_build_id,
    read_sysfs_build_id,
    vmlinux_paths,
)

BUILD_ID = bytes(range(1, 21))
OTHER_ID = bytes(range(100, 120))


def _note(name: bytes, desc: bytes, note_type: int, order: str = "=") -> bytes:
    def pad(b: bytes) -> bytes:
        return b + b"\0" * (-len(b) % 4)

    return struct.pack(order + "III", len(name), len(desc), note_type) + pad(name) + pad(desc)


def _make_elf(sections, order="<"):
    names = [name for name, _ in sections] + [".shstrtab"]
    shstrtab = b"\0"
    name_offsets = []
    for name in names:
        name_offsets.append(len(shstrtab))
        shstrtab += name.encode() + b"\0"

    contents = [data for _, data in sections] + [shstrtab]
    types = [7] * len(sections) + [3]
    body = b""
    offsets = []
    for data in contents:
        offsets.append(64 + len(body))
        body += data
    shoff = 64 + len(body)
    shnum = len(contents) + 1
    shstrndx = shnum - 1

    ident = b"\x7fELF" + bytes([2, 1 if order == "<" else 2, 1]) + bytes(9)
    header = ident + struct.pack(
        order + "HHIQQQIHHHHHH", 1, 62, 1, 0, 0, shoff, 0, 64, 0, 0, 64, shnum, shstrndx
    )
    shdrs = struct.pack(order + "IIQQQQIIQQ", *([0] * 10))
    for name_off, sh_type, offset, data in zip(name_offsets, types, offsets, contents):
        shdrs += struct.pack(
            order + "IIQQQQIIQQ", name_off, sh_type, 0, 0, offset, len(data), 0, 0, 1, 0
        )
    return header + body + shdrs


def test_parse_finds_gnu_note():
    data = _note(b"GNU\0", BUILD_ID, 3)
    assert parse_build_id_notes(data, BUILD_ID_SIZE) == BUILD_ID


def test_parse_skips_unrelated_notes():
    data = _note(b"Linux\0", b"\x01\x02\x03", 1) + _note(b"XYZ\0", OTHER_ID, 3)
    data += _note(b"GNU\0", BUILD_ID, 3)
    assert parse_build_id_notes(data) == BUILD_ID


def test_parse_pads_to_requested_size():
    data = _note(b"GNU\0", BUILD_ID, 3)
    result = parse_build_id_notes(data, 32)
    assert len(result) == 32
    assert result[:20] == BUILD_ID
    assert result[20:] == bytes(12)


def test_parse_short_build_id_is_zero_padded():
    data = _note(b"GNU\0", BUILD_ID[:16], 3)
    assert parse_build_id_notes(data) == BUILD_ID[:16] + bytes(4)


def test_parse_without_build_id_returns_none():
    assert parse_build_id_notes(_note(b"GNU\0", BUILD_ID, 1)) is None
    assert parse_build_id_notes(b"") is None


def test_parse_rejects_small_buffer():
    with pytest.raises(ValueError):
        parse_build_id_notes(_note(b"GNU\0", BUILD_ID, 3), 19)


def test_build_id_to_hex():
    assert build_id_to_hex(bytes([0x00, 0x01, 0xAB])) == "0001ab"
    assert bytes.fromhex(build_id_to_hex(BUILD_ID)) == BUILD_ID
    assert len(build_id_to_hex(BUILD_ID)) == 2 * BUILD_ID_SIZE


def test_read_sysfs_build_id(tmp_path):
    notes = tmp_path / "notes"
    notes.write_bytes(_note(b"Xen\0", b"abcd", 5) + _note(b"GNU\0", BUILD_ID, 3))
    assert read_sysfs_build_id(notes) == BUILD_ID


def test_read_sysfs_missing_file(tmp_path):
    with pytest.raises(OSError):
        read_sysfs_build_id(tmp_path / "absent")


@pytest.mark.parametrize("order", ["<", ">"])
def test_read_elf_build_id(tmp_path, order):
    path = tmp_path / "vmlinux"
    path.write_bytes(
        _make_elf([(".note.gnu.build-id", _note(b"GNU\0", BUILD_ID, 3, order))], order)
    )
    assert read_elf_build_id(path) == BUILD_ID


def test_read_elf_prefers_gnu_build_id_section(tmp_path):
    path = tmp_path / "image"
    path.write_bytes(
        _make_elf(
            [
                (".notes", _note(b"GNU\0", OTHER_ID, 3, "<")),
                (".note.gnu.build-id", _note(b"GNU\0", BUILD_ID, 3, "<")),
            ]
        )
    )
    assert read_elf_build_id(path) == BUILD_ID


def test_read_elf_falls_back_to_note_section(tmp_path):
    path = tmp_path / "vdso"
    path.write_bytes(_make_elf([(".note", _note(b"GNU\0", OTHER_ID, 3, "<"))]))
    assert read_elf_build_id(path) == OTHER_ID


def test_read_elf_wrong_length_build_id(tmp_path):
    path = tmp_path / "short"
    path.write_bytes(_make_elf([(".notes", _note(b"GNU\0", BUILD_ID[:16], 3, "<"))]))
    assert read_elf_build_id(path) is None


def test_read_elf_without_note_sections(tmp_path):
    path = tmp_path / "plain"
    path.write_bytes(_make_elf([(".data", b"\0" * 8)]))
    assert read_elf_build_id(path) is None


def test_read_non_elf_file(tmp_path):
    path = tmp_path / "text"
    path.write_bytes(b"just some text")
    assert read_elf_build_id(path) is None


def test_read_damaged_elf(tmp_path):
    path = tmp_path / "broken"
    path.write_bytes(b"\x7fELF\x02\x01\x01" + bytes(20))
    with pytest.raises(ValueError):
        read_elf_build_id(path)


def test_vmlinux_paths():
    paths = vmlinux_paths("5.10.0")
    assert paths[:2] == ["vmlinux", "/boot/vmlinux"]
    assert "/boot/vmlinux-5.10.0" in paths
    assert "/lib/modules/5.10.0/build/vmlinux" in paths
    assert paths[-1] == "/usr/lib/debug/boot/vmlinux-5.10.0.debug"
    assert len(paths) == 7


def test_vmlinux_paths_default_release():
    paths = vmlinux_paths()
    assert len(paths) == 7
    assert all(p.startswith("/") for p in paths[1:])