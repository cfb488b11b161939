"""Locating GNU build ids in ELF note sections and kernel note files."""

from __future__ import annotations

import os
import platform
import struct
from collections.abc import Iterator
from typing import Optional, Union

BUILD_ID_SIZE = 20
NT_GNU_BUILD_ID = 3

_GNU_NAME = b"GNU\0"
_NHDR_SIZE = 12
_SHT_NOBITS = 8
_NOTE_SECTIONS = (".note.gnu.build-id", ".notes", ".note")

_VMLINUX_PATHS = ("vmlinux", "/boot/vmlinux")
_VMLINUX_PATHS_RELEASE = (
    "/boot/vmlinux-{}",
    "/usr/lib/debug/boot/vmlinux-{}",
    "/lib/modules/{}/build/vmlinux",
    "/usr/lib/debug/lib/modules/{}/vmlinux",
    "/usr/lib/debug/boot/vmlinux-{}.debug",
)

PathLike = Union[str, "os.PathLike[str]"]


def _note_align(size: int) -> int:
    return (size + 3) & ~3


def _iter_notes(data: bytes, order: str) -> Iterator[tuple[int, int, bytes, bytes]]:
    """Yield (type, namesz, name, aligned descriptor) for each note in ``data``."""
    header = struct.Struct(order + "III")
    offset = 0
    while offset + _NHDR_SIZE <= len(data):
        namesz, descsz, note_type = header.unpack_from(data, offset)
        offset += _NHDR_SIZE
        name = data[offset : offset + namesz]
        offset += _note_align(namesz)
        desc = data[offset : offset + _note_align(descsz)]
        offset += _note_align(descsz)
        yield note_type, namesz, name, desc


def _find_gnu_build_id(data: bytes, order: str) -> Optional[bytes]:
    for note_type, namesz, name, desc in _iter_notes(data, order):
        if (
            note_type == NT_GNU_BUILD_ID
            and namesz == len(_GNU_NAME)
            and name[: len(_GNU_NAME)] == _GNU_NAME
        ):
            return desc
    return None


def _check_size(size: int) -> None:
    if size < BUILD_ID_SIZE:
        raise ValueError(f"build id buffer of {size} bytes is smaller than {BUILD_ID_SIZE}")


def parse_build_id_notes(data: bytes, size: int = BUILD_ID_SIZE) -> Optional[bytes]:
    """Find the GNU build id among notes in native byte order.

    The result is truncated or zero padded to ``size`` bytes; None when
    there is no build id note.  Raises ValueError when ``size`` is too small.
    """
    _check_size(size)
    desc = _find_gnu_build_id(bytes(data), "=")
    if desc is None:
        return None
    return desc[:size].ljust(size, b"\0")


def build_id_to_hex(build_id: bytes) -> str:
    """Lower case hexadecimal rendering of a build id."""
    return bytes(build_id).hex()


def read_sysfs_build_id(path: PathLike) -> Optional[bytes]:
    """Read the build id from a kernel notes file such as /sys/kernel/notes."""
    with open(path, "rb") as fp:
        data = fp.read()
    return parse_build_id_notes(data, BUILD_ID_SIZE)


def _elf_sections(data: bytes) -> Iterator[tuple[str, int, bytes]]:
    """Yield (name, type, contents) for each section of an ELF image."""
    elf_class = data[4]
    encoding = data[5]
    if elf_class not in (1, 2) or encoding not in (1, 2):
        raise ValueError("cannot get elf header")
    order = "<" if encoding == 1 else ">"
    if elf_class == 2:
        (shoff,) = struct.unpack_from(order + "Q", data, 0x28)
        shentsize, shnum, shstrndx = struct.unpack_from(order + "HHH", data, 0x3A)
        shdr = struct.Struct(order + "IIQQQQIIQQ")
    else:
        (shoff,) = struct.unpack_from(order + "I", data, 0x20)
        shentsize, shnum, shstrndx = struct.unpack_from(order + "HHH", data, 0x2E)
        shdr = struct.Struct(order + "IIIIIIIIII")
    if shoff == 0:
        return

    def header(index: int) -> tuple[int, int, int, int, int]:
        fields = shdr.unpack_from(data, shoff + index * shentsize)
        name, sh_type, _flags, _addr, offset, sh_size, link = fields[:7]
        return name, sh_type, offset, sh_size, link

    if shnum == 0:
        shnum = header(0)[3]
    if shstrndx == 0xFFFF:
        shstrndx = header(0)[4]

    _, _, str_off, str_size, _ = header(shstrndx)
    strtab = data[str_off : str_off + str_size]

    for index in range(shnum):
        name_off, sh_type, offset, sh_size, _ = header(index)
        end = strtab.find(b"\0", name_off)
        name = strtab[name_off : end if end >= 0 else len(strtab)].decode(
            "utf-8", "replace"
        )
        contents = b"" if sh_type == _SHT_NOBITS else data[offset : offset + sh_size]
        yield name, sh_type, contents


def read_elf_build_id(path: PathLike) -> Optional[bytes]:
    """Read the 20 byte GNU build id of an ELF file.

    Returns None when the file is not ELF, has no build id note, or its
    build id is not 20 bytes long.  Raises ValueError for a damaged ELF image.
    """
    with open(path, "rb") as fp:
        data = fp.read()
    if data[:4] != b"\x7fELF":
        return None
    try:
        sections = {}
        for name, _sh_type, contents in _elf_sections(data):
            sections.setdefault(name, contents)
        order = "<" if data[5] == 1 else ">"
    except (struct.error, IndexError) as exc:
        raise ValueError(f"cannot read {os.fspath(path)} ELF file") from exc

    contents = next((sections[n] for n in _NOTE_SECTIONS if n in sections), None)
    if contents is None:
        return None
    desc = _find_gnu_build_id(contents, order)
    if desc is None or len(desc) != BUILD_ID_SIZE:
        return None
    return desc


def vmlinux_paths(release: Optional[str] = None) -> list[str]:
    """Candidate locations of the kernel image for a kernel release."""
    if release is None:
        release = platform.uname().release
    return list(_VMLINUX_PATHS) + [fmt.format(release) for fmt in _VMLINUX_PATHS_RELEASE]