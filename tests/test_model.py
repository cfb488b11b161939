import pytest

from debugtypes.dwarf import DwTag, FloatType
from debugtypes.model import (
    ArrayType,
    BaseType,
    Class,
    ClassMember,
    Enumerator,
    FType,
    Function,
    InlineExpansion,
    Label,
    LexBlock,
    Namespace,
    Parameter,
    Tag,
    Type,
    Variable,
)


def _member(name, offset, size, type_id=1):
    return ClassMember(
        name=name,
        type=type_id,
        byte_offset=offset,
        bit_offset=offset * 8,
        byte_size=size,
        bit_size=size * 8,
    )


def test_tag_predicates():
    assert Tag(tag=DwTag.STRUCTURE_TYPE).is_struct()
    assert Tag(tag=DwTag.CLASS_TYPE).is_struct()
    assert Tag(tag=DwTag.INTERFACE_TYPE).is_struct()
    assert not Tag(tag=DwTag.UNION_TYPE).is_struct()
    assert Tag(tag=DwTag.UNION_TYPE).is_union()
    assert Tag(tag=DwTag.TYPEDEF).is_typedef()
    assert Tag(tag=DwTag.ENUMERATION_TYPE).is_enumeration()
    assert Tag(tag=DwTag.POINTER_TYPE).is_pointer()
    assert Tag(tag=DwTag.SUBPROGRAM).is_function()


@pytest.mark.parametrize(
    "dwtag",
    [DwTag.CONST_TYPE, DwTag.VOLATILE_TYPE, DwTag.RESTRICT_TYPE, DwTag.ATOMIC_TYPE],
)
def test_modifiers(dwtag):
    assert Tag(tag=dwtag).is_modifier()
    assert Tag(tag=dwtag).is_tag_type()


def test_type_classification():
    assert Tag(tag=DwTag.TYPEDEF).is_type()
    assert not Tag(tag=DwTag.BASE_TYPE).is_type()
    assert Tag(tag=DwTag.BASE_TYPE).is_tag_type()
    assert not Tag(tag=DwTag.MEMBER).is_tag_type()
    assert Tag(tag=DwTag.NAMESPACE).has_namespace()
    assert not Tag(tag=DwTag.TYPEDEF).has_namespace()


def test_base_type_display_name():
    assert BaseType(name="int", bit_size=32).display_name() == "int"
    cmplx = BaseType(name="float", name_has_encoding=False, float_type=FloatType.CMPLX)
    assert cmplx.display_name() == "complex float"
    boolean = BaseType(name="x", name_has_encoding=False, is_bool=True)
    assert boolean.display_name() == "bool x"
    varargs = BaseType(name="x", name_has_encoding=False, is_varargs=True)
    assert varargs.display_name() == "... x"


def test_base_type_size_and_name_to_size():
    bt = BaseType(name="int", bit_size=32)
    assert bt.size() == 4
    assert bt.name_to_size(8) == 32
    assert BaseType(name="long").name_to_size(8) == 8 * 8
    assert BaseType(name="long").name_to_size(4) == 4 * 8


def test_name_to_size_strips_signed_prefix():
    bt = BaseType(name="signed long long int", name_has_encoding=False)
    assert bt.name_to_size(8) == 64


def test_name_to_size_unknown():
    with pytest.raises(ValueError):
        BaseType(name="mystery").name_to_size(8)


def test_array_total_entries():
    arr = ArrayType(nr_entries=[3, 5])
    assert arr.dimensions == 2
    assert arr.total_entries() == 3 * 5
    assert ArrayType().total_entries() == 1


def test_namespace_add_tag():
    ns = Namespace(name="ns")
    t = Tag(tag=DwTag.VARIABLE)
    ns.add_tag(t)
    assert ns.tags == [t]
    assert ns.nr_tags == 1


def test_type_members_and_counts():
    t = Type(name="s")
    a = _member("a", 0, 4, type_id=7)
    s = ClassMember(name="st", is_static=True, type=7)
    inh = ClassMember(tag=DwTag.INHERITANCE, type=9)
    b = _member("b", 4, 4, type_id=7)
    for m in (a, s, inh, b):
        t.add_member(m)
    assert t.nr_members == 3
    assert t.nr_static_members == 1
    assert list(t.members()) == [a, s, inh, b]
    assert list(t.data_members()) == [a, s, b]
    assert t.last_member() is b
    assert t.find_member_by_name("b") is b
    assert t.find_member_by_name("zz") is None
    assert t.find_member_by_name(None) is None
    assert t.nr_members_of_type(7) == 3


def test_enumerators_and_prefix():
    t = Type(tag=DwTag.ENUMERATION_TYPE, name="e")
    for i, n in enumerate(["FOO_ALPHA", "FOO_BETA", "FOO_GAMMA"]):
        t.add_enumerator(Enumerator(name=n, value=i))
    assert t.nr_members == 3
    assert [e.name for e in t.enumerators()] == ["FOO_ALPHA", "FOO_BETA", "FOO_GAMMA"]
    assert t.calc_member_prefix() == "FOO_"
    assert t.member_prefix_len == len("FOO_")


def test_single_enumerator_has_no_prefix():
    t = Type(tag=DwTag.ENUMERATION_TYPE)
    t.add_enumerator(Enumerator(name="ONLY"))
    assert t.calc_member_prefix() is None
    assert t.member_prefix_len == 0


def test_find_holes_byte_hole():
    cls = Class(name="s", size=16)
    a = _member("a", 0, 4)
    b = _member("b", 8, 8)
    cls.add_member(a)
    cls.add_member(b)
    cls.find_holes()
    assert cls.holes_searched
    assert cls.nr_holes == 1
    assert a.hole == 8 - 4
    assert b.hole == 0
    assert cls.padding == 0
    assert a.byte_size + a.hole + b.byte_size + b.hole + cls.padding == cls.size
    assert cls.has_hole_ge(a.hole)
    assert not cls.has_hole_ge(a.hole + 1)
    assert cls.find_bit_hole(None, 8) is a
    assert cls.find_bit_hole(a, 8) is None


def test_find_holes_padding():
    cls = Class(name="p", size=16)
    a = _member("a", 0, 8)
    b = _member("b", 8, 4)
    cls.add_member(a)
    cls.add_member(b)
    cls.find_holes()
    assert cls.nr_holes == 0
    assert cls.padding == cls.size - b.byte_offset - b.byte_size
    assert not cls.has_hole_ge(1)


def test_find_holes_skips_unions():
    u = Class(tag=DwTag.UNION_TYPE, size=8)
    u.add_member(_member("a", 0, 4))
    u.find_holes()
    assert not u.holes_searched


def test_find_holes_bitfields():
    cls = Class(name="bf", size=4)
    x = ClassMember(name="x", byte_offset=0, bit_offset=0, byte_size=4, bit_size=32, bitfield_size=3)
    y = ClassMember(name="y", byte_offset=0, bit_offset=3, byte_size=4, bit_size=32, bitfield_size=5)
    cls.add_member(x)
    cls.add_member(y)
    cls.find_holes()
    assert x.bit_hole == 0
    assert cls.nr_bit_holes == 0
    used = x.bitfield_size + y.bitfield_size
    assert cls.bit_padding + used + cls.padding * 8 == cls.size * 8


def test_clone_copies_members():
    cls = Class(name="orig", size=8)
    a = _member("a", 0, 4)
    cls.add_member(a)
    cls.add_tag(Tag(tag=DwTag.SUBPROGRAM))
    clone = cls.clone("copy")
    assert clone.name == "copy"
    assert cls.name == "orig"
    assert clone.nr_members == 1
    assert len(clone.tags) == 1
    assert clone.tags[0] is not a
    assert clone.tags[0].name == "a"
    assert clone.clone().name == "copy"


def test_vtable_entries():
    cls = Class()
    f = Function(name="f")
    cls.add_vtable_entry(f)
    assert cls.vtable == [f]
    assert cls.nr_vtable_entries == 1


def test_ftype_parameters():
    ft = FType()
    p = Parameter(name="x", type=3)
    ft.add_parameter(p)
    assert ft.parms == [p]
    assert ft.nr_parms == 1
    fn = Function(name="f")
    assert fn.is_function()
    assert fn.nr_parms == 0


def test_lexblock_counters():
    block = LexBlock()
    block.add_variable(Variable(name="v"))
    block.add_label(Label(name="l"))
    block.add_lexblock(LexBlock())
    block.add_inline_expansion(InlineExpansion(size=10))
    block.add_inline_expansion(InlineExpansion(size=6))
    assert block.nr_variables == 1
    assert block.nr_labels == 1
    assert block.nr_lexblocks == 1
    assert block.nr_inline_expansions == 2
    assert block.size_inline_expansions == 10 + 6
    assert len(block.tags) == 5