# debugtypes

An in-memory model of the type information found in debugging data
(DWARF-style tags): compile units with their type, tag and function tables,
struct layout analysis (byte and bit holes, padding), and reading of GNU
build ids from ELF files and kernel note files.

## Modules

- `debugtypes.dwarf`: tag codes (`DwTag`), floating-point kinds
  (`FloatType`) and source languages (`Language`).
  - `lang_str2int(name)` maps a language name such as `"c99"` or `"asm"`
    (case-insensitive) to a `Language`; unknown names raise `ValueError`.
  - `base_type_table_size(name)` gives the size in bits of a known base type
    name (`0` means "as wide as an address"); unknown names raise `KeyError`.
  - `float_type_str(kind)` gives the text prefix for a float kind.
- `debugtypes.model`: the tag hierarchy, as dataclasses: `Tag`, `BaseType`,
  `ArrayType`, `StringType`, `Namespace`, `Type`, `Class`, `ClassMember`,
  `Enumerator`, `FType`, `Parameter`, `Function`, `LexBlock`, `Variable`,
  `Label` and `InlineExpansion`.
  - `Tag` has predicates such as `is_struct()`, `is_typedef()`,
    `is_modifier()`, `is_type()` and `is_tag_type()`.
  - `BaseType.display_name()`, `size()` (bytes) and `name_to_size(addr_size)`
    (bits, from the name).
  - `Type.add_member()`, `members()`, `data_members()`, `enumerators()`,
    `find_member_by_name()`, `nr_members_of_type()` and
    `calc_member_prefix()` (common prefix of enumerator names).
  - `Class.find_holes()` computes the hole after each member, bit holes,
    leading holes and trailing padding; `find_bit_hole()`, `has_hole_ge()`
    and `clone()` build on that.
- `debugtypes.cu`: `CompileUnit` keeps type, tag and function tables. Type id
  0 is reserved for `void`. It offers `add_tag()`, `add_tag_with_id()`,
  lookups by id (`type()`, `tag()`, `function()`), iteration (`types()`,
  `structs()`, `functions()`, `walk_tags()`), searches by name
  (`find_type_by_name()`, `find_struct_by_name()`,
  `find_base_type_by_name()`, `find_enumeration_by_name()`, ...), which
  return `(id, tag)` or `None`, and `find_function_at_addr()`. `Cus` is a
  thread-safe collection of compile units; `Cus.add()` runs `find_holes()` on
  every struct of the unit added. `ptr_table_stats_csv_header()` and
  `CompileUnit.ptr_table_stats_csv()` produce table statistics as CSV.
- `debugtypes.buildid`: `read_elf_build_id(path)` and
  `read_sysfs_build_id(path)` return the raw build id bytes (or `None`),
  `parse_build_id_notes(data)` reads notes from a byte string,
  `build_id_to_hex()` renders a build id, and `vmlinux_paths(release)` lists
  the usual kernel image locations for a kernel release.

## Example

```python
from debugtypes.cu import CompileUnit, Cus
from debugtypes.model import BaseType, Class, ClassMember

cu = CompileUnit("example.c", addr_size=8)
char_id = cu.add_tag(BaseType(name="char", bit_size=8))
int_id = cu.add_tag(BaseType(name="int", bit_size=32))

point = Class(name="point", size=8)
point.add_member(ClassMember(name="tag", type=char_id, byte_size=1))
point.add_member(ClassMember(name="x", type=int_id,
                             byte_offset=4, bit_offset=32, byte_size=4))
cu.add_tag(point)

cus = Cus()
cus.add(cu)                      # computes holes of every struct

found = cus.find_struct_by_name("point")
unit, type_id, cls = found
print(cls.find_member_by_name("tag").hole)   # 3
print(cls.nr_holes, cls.padding)             # 1 0
```

```python
from debugtypes.buildid import build_id_to_hex, read_elf_build_id

build_id = read_elf_build_id("/bin/true")
if build_id is not None:
    print(build_id_to_hex(build_id))
```

## What it does not do

The package does not read DWARF, BTF or CTF data from object files: the model
is filled in by the caller. It has no command-line tool, does not compute
type sizes or alignment across type references, does not infer packed
attributes, and does not print types or emit C definitions.

## Installation

```
pip install .
```

## Running the tests

```
pip install .[test]
pytest
```