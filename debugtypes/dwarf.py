"""DWARF constants: tags, languages, base type sizes and float kinds."""

from __future__ import annotations

from enum import IntEnum


class DwTag(IntEnum):
    """DWARF debugging information entry tags."""

    ARRAY_TYPE = 0x01
    CLASS_TYPE = 0x02
    ENTRY_POINT = 0x03
    ENUMERATION_TYPE = 0x04
    FORMAL_PARAMETER = 0x05
    IMPORTED_DECLARATION = 0x08
    LABEL = 0x0A
    LEXICAL_BLOCK = 0x0B
    MEMBER = 0x0D
    POINTER_TYPE = 0x0F
    REFERENCE_TYPE = 0x10
    COMPILE_UNIT = 0x11
    STRING_TYPE = 0x12
    STRUCTURE_TYPE = 0x13
    SUBROUTINE_TYPE = 0x15
    TYPEDEF = 0x16
    UNION_TYPE = 0x17
    UNSPECIFIED_PARAMETERS = 0x18
    VARIANT = 0x19
    COMMON_BLOCK = 0x1A
    COMMON_INCLUSION = 0x1B
    INHERITANCE = 0x1C
    INLINED_SUBROUTINE = 0x1D
    MODULE = 0x1E
    PTR_TO_MEMBER_TYPE = 0x1F
    SET_TYPE = 0x20
    SUBRANGE_TYPE = 0x21
    WITH_STMT = 0x22
    ACCESS_DECLARATION = 0x23
    BASE_TYPE = 0x24
    CATCH_BLOCK = 0x25
    CONST_TYPE = 0x26
    CONSTANT = 0x27
    ENUMERATOR = 0x28
    FILE_TYPE = 0x29
    FRIEND = 0x2A
    NAMELIST = 0x2B
    NAMELIST_ITEM = 0x2C
    PACKED_TYPE = 0x2D
    SUBPROGRAM = 0x2E
    TEMPLATE_TYPE_PARAMETER = 0x2F
    TEMPLATE_VALUE_PARAMETER = 0x30
    THROWN_TYPE = 0x31
    TRY_BLOCK = 0x32
    VARIANT_PART = 0x33
    VARIABLE = 0x34
    VOLATILE_TYPE = 0x35
    DWARF_PROCEDURE = 0x36
    RESTRICT_TYPE = 0x37
    INTERFACE_TYPE = 0x38
    NAMESPACE = 0x39
    IMPORTED_MODULE = 0x3A
    UNSPECIFIED_TYPE = 0x3B
    PARTIAL_UNIT = 0x3C
    IMPORTED_UNIT = 0x3D
    CONDITION = 0x3F
    SHARED_TYPE = 0x40
    TYPE_UNIT = 0x41
    RVALUE_REFERENCE_TYPE = 0x42
    TEMPLATE_ALIAS = 0x43
    COARRAY_TYPE = 0x44
    GENERIC_SUBRANGE = 0x45
    DYNAMIC_TYPE = 0x46
    ATOMIC_TYPE = 0x47
    CALL_SITE = 0x48
    CALL_SITE_PARAMETER = 0x49
    SKELETON_UNIT = 0x4A
    IMMUTABLE_TYPE = 0x4B
    LLVM_ANNOTATION = 0x6000


class FloatType(IntEnum):
    """Kinds of floating point base types."""

    SINGLE = 1
    DOUBLE = 2
    CMPLX = 3
    CMPLX_DBL = 4
    CMPLX_LDBL = 5
    LDBL = 6
    INTVL = 7
    INTVL_DBL = 8
    INTVL_LDBL = 9
    IMGRY = 10
    IMGRY_DBL = 11
    IMGRY_LDBL = 12


class Language(IntEnum):
    """Source languages as encoded in DW_AT_language."""

    C89 = 0x0001
    C = 0x0002
    ADA83 = 0x0003
    C_PLUS_PLUS = 0x0004
    COBOL74 = 0x0005
    COBOL85 = 0x0006
    FORTRAN77 = 0x0007
    FORTRAN90 = 0x0008
    PASCAL83 = 0x0009
    MODULA2 = 0x000A
    JAVA = 0x000B
    C99 = 0x000C
    ADA95 = 0x000D
    FORTRAN95 = 0x000E
    PLI = 0x000F
    OBJC = 0x0010
    OBJC_PLUS_PLUS = 0x0011
    UPC = 0x0012
    D = 0x0013
    PYTHON = 0x0014
    OPENCL = 0x0015
    GO = 0x0016
    MODULA3 = 0x0017
    HASKELL = 0x0018
    C_PLUS_PLUS_03 = 0x0019
    C_PLUS_PLUS_11 = 0x001A
    OCAML = 0x001B
    RUST = 0x001C
    C11 = 0x001D
    SWIFT = 0x001E
    JULIA = 0x001F
    DYLAN = 0x0020
    C_PLUS_PLUS_14 = 0x0021
    FORTRAN03 = 0x0022
    FORTRAN08 = 0x0023
    RENDERSCRIPT = 0x0024
    BLISS = 0x0025
    MIPS_ASSEMBLER = 0x8001


_LANGUAGE_NAMES: dict[str, Language] = {
    "ada83": Language.ADA83,
    "ada95": Language.ADA95,
    "bliss": Language.BLISS,
    "c11": Language.C11,
    "c89": Language.C89,
    "c99": Language.C99,
    "c": Language.C,
    "cobol74": Language.COBOL74,
    "cobol85": Language.COBOL85,
    "c++03": Language.C_PLUS_PLUS_03,
    "c++11": Language.C_PLUS_PLUS_11,
    "c++14": Language.C_PLUS_PLUS_14,
    "c++": Language.C_PLUS_PLUS,
    "d": Language.D,
    "dylan": Language.DYLAN,
    "fortran03": Language.FORTRAN03,
    "fortran08": Language.FORTRAN08,
    "fortran77": Language.FORTRAN77,
    "fortran90": Language.FORTRAN90,
    "fortran95": Language.FORTRAN95,
    "go": Language.GO,
    "haskell": Language.HASKELL,
    "java": Language.JAVA,
    "julia": Language.JULIA,
    "modula2": Language.MODULA2,
    "modula3": Language.MODULA3,
    "objc": Language.OBJC,
    "objc++": Language.OBJC_PLUS_PLUS,
    "ocaml": Language.OCAML,
    "opencl": Language.OPENCL,
    "pascal83": Language.PASCAL83,
    "pli": Language.PLI,
    "python": Language.PYTHON,
    "renderscript": Language.RENDERSCRIPT,
    "rust": Language.RUST,
    "swift": Language.SWIFT,
    "upc": Language.UPC,
}


def lang_str2int(lang: str) -> Language:
    """Map a language name (case-insensitive) to its DWARF language code.

    Raises ValueError for an unknown name.
    """
    key = lang.lower()
    if key == "asm":
        return Language.MIPS_ASSEMBLER
    try:
        return _LANGUAGE_NAMES[key]
    except KeyError:
        raise ValueError(f"unknown language: {lang!r}") from None


# Sizes in bits; 0 means "the size of an address on the target".
_LONG_DOUBLE_BITS = 128

_BASE_TYPE_SIZES: dict[str, int] = {
    "unsigned": 32,
    "signed int": 32,
    "unsigned int": 32,
    "int": 32,
    "short unsigned int": 16,
    "signed short": 16,
    "unsigned short": 16,
    "short int": 16,
    "short": 16,
    "char": 8,
    "signed char": 8,
    "unsigned char": 8,
    "signed long": 0,
    "long int": 0,
    "long": 0,
    "unsigned long": 0,
    "long unsigned int": 0,
    "bool": 8,
    "_Bool": 8,
    "long long unsigned int": 64,
    "long long int": 64,
    "long long": 64,
    "signed long long": 64,
    "unsigned long long": 64,
    "double": 64,
    "double double": 64,
    "single float": 32,
    "float": 32,
    "long double": _LONG_DOUBLE_BITS,
    "long double long double": _LONG_DOUBLE_BITS,
    "__int128": 128,
    "unsigned __int128": 128,
    "__int128 unsigned": 128,
    "_Float128": 128,
}


def base_type_table_size(name: str) -> int:
    """Return the size in bits of a known base type name.

    A result of 0 means the type is as wide as a target address.
    Raises KeyError for a name not in the table.
    """
    try:
        return _BASE_TYPE_SIZES[name]
    except KeyError:
        raise KeyError(name) from None


_FLOAT_TYPE_STRINGS: dict[FloatType, str] = {
    FloatType.SINGLE: "single",
    FloatType.DOUBLE: "double",
    FloatType.CMPLX: "complex",
    FloatType.CMPLX_DBL: "complex double",
    FloatType.CMPLX_LDBL: "complex long double",
    FloatType.LDBL: "long double",
    FloatType.INTVL: "interval",
    FloatType.INTVL_DBL: "interval double",
    FloatType.INTVL_LDBL: "interval long double",
    FloatType.IMGRY: "imaginary",
    FloatType.IMGRY_DBL: "imaginary double",
    FloatType.IMGRY_LDBL: "imaginary long double",
}


def float_type_str(float_type: int) -> str:
    """Return the textual prefix for a floating point kind.

    Raises ValueError when the value is not a valid float kind.
    """
    try:
        return _FLOAT_TYPE_STRINGS[FloatType(float_type)]
    except ValueError:
        raise ValueError(f"invalid float type: {float_type!r}") from None