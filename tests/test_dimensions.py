import pytest

from clnet.dimensions import (
    Dimensions,
    FilterDimensions,
    PaddingValues,
    StrideDimensions,
)


def test_total_elements_is_product():
    assert Dimensions([2, 3, 4]).total_elements() == 24


def test_single_dimension_total_is_that_extent():
    assert Dimensions([7]).total_elements() == 7


def test_empty_dimensions():
    dims = Dimensions()
    assert dims.total_elements() == 0
    assert str(dims) == ""


def test_string_format():
    assert str(Dimensions([1, 2, 3])) == "[1, 2, 3]"


@pytest.mark.parametrize("bad", [[0], [3, 0, 2], [-1, 4]])
def test_zero_or_negative_rejected(bad):
    with pytest.raises(ValueError, match="zero or negative"):
        Dimensions(bad)


def test_equality_and_hash():
    assert Dimensions([3, 4]) == Dimensions((3, 4))
    assert Dimensions([3, 4]) != Dimensions([4, 3])
    assert len({Dimensions([3, 4]), Dimensions([3, 4])}) == 1


def test_indexing_and_iteration():
    dims = Dimensions([5, 6, 7])
    assert dims[1] == 6
    assert list(dims) == [5, 6, 7]
    assert len(dims) == 3


def test_validate_dense_accepts_one_dimension():
    dims = Dimensions([10])
    assert Dimensions.validate_dense(dims) is dims


def test_validate_dense_rejects_more_dimensions():
    with pytest.raises(ValueError, match="single-dimensional"):
        Dimensions.validate_dense(Dimensions([2, 5]))


def test_filter_accessors():
    f = FilterDimensions(3, 5, 2, 8)
    assert (f.height, f.width, f.input_channels, f.output_channels) == (3, 5, 2, 8)


def test_filter_default_is_all_ones():
    assert FilterDimensions() == Dimensions([1, 1, 1, 1])


def test_filter_from_sequence_round_trip():
    f = FilterDimensions(3, 3, 1, 4)
    assert FilterDimensions.from_sequence(f.dimensions) == f


def test_filter_from_sequence_wrong_length():
    with pytest.raises(ValueError, match="4-dimensional"):
        FilterDimensions.from_sequence([3, 3, 1])


def test_filter_rejects_zero():
    with pytest.raises(ValueError):
        FilterDimensions(3, 0, 1, 1)


def test_stride_accessors_and_default():
    s = StrideDimensions(2, 3)
    assert (s.height, s.width) == (2, 3)
    assert StrideDimensions() == Dimensions([1, 1])


def test_stride_from_sequence():
    assert StrideDimensions.from_sequence([2, 4]) == StrideDimensions(2, 4)
    with pytest.raises(ValueError, match="2-dimensional"):
        StrideDimensions.from_sequence([1, 2, 3])


def test_stride_rejects_zero():
    with pytest.raises(ValueError):
        StrideDimensions(0, 1)


def test_padding_allows_zero():
    p = PaddingValues(0, 0, 0, 0)
    assert (p.top, p.bottom, p.left, p.right) == (0, 0, 0, 0)


def test_padding_default_is_all_ones():
    assert PaddingValues() == Dimensions([1, 1, 1, 1])


def test_padding_accessors():
    p = PaddingValues(1, 2, 3, 4)
    assert (p.top, p.bottom, p.left, p.right) == (1, 2, 3, 4)


def test_padding_rejects_negative():
    with pytest.raises(ValueError, match="negative"):
        PaddingValues(0, -1, 0, 0)


def test_padding_from_sequence():
    assert PaddingValues.from_sequence([0, 1, 0, 1]) == PaddingValues(0, 1, 0, 1)
    with pytest.raises(ValueError, match="4-dimensional"):
        PaddingValues.from_sequence([0, 1])