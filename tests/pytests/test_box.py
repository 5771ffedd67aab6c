import numpy as np
import pytest
from amrdata.geometry.amr.box import Box, as_int_vector

def test_shape_and_size():
    box = Box([0, 0], [9, 4])
    assert box.dim == 2
    assert box.shape == (10, 5)
    assert box.size == 50
    assert not box.is_empty()

def test_grow_equals_ghost_box():
    box = Box([0], [9])
    assert box.grow(2) == Box([-2], [11])
    assert Box([0, 0], [3, 3]).grow([1, 2]) == Box([-1, -2], [4, 5])

def test_intersection():
    a = Box([-2], [11])
    b = Box([10], [19])
    assert a * b == Box([10], [11])
    assert (Box([0], [4]) * Box([6], [9])).is_empty()

def test_empty_boxes_compare_equal():
    assert Box([5], [3]) == Box.empty(1)
    assert Box.empty(2).size == 0
    assert Box.empty(2).shape == (0, 0)

def test_contains():
    box = Box([0, 0], [9, 9])
    assert box.contains([0, 9])
    assert not box.contains([10, 0])
    assert box.contains_box(Box([2, 2], [3, 3]))
    assert not box.contains_box(Box([8, 8], [10, 9]))

    points = np.array([[0, 0], [9, 10], [-1, 3], [5, 5]])
    assert np.all(box.contains_points(points) == [True, False, False, True])

def test_coarsen_refine():
    fine = Box([-4], [11])
    assert fine.coarsen(2) == Box([-2], [5])
    assert Box([-3], [10]).coarsen(2) == Box([-2], [5])  # floor division
    assert Box([2], [5]).refine(2) == Box([4], [11])
    assert fine.is_aligned(2)
    assert not Box([-3], [10]).is_aligned(2)

def test_coarsen_refine_empty_box():
    assert Box([21], [20]).coarsen(2).is_empty()
    assert Box([5, 0], [4, 3]).coarsen([2, 2]).is_empty()
    assert Box([3], [2]).refine(2).is_empty()

def test_slices():
    box = Box([10, 0], [11, 2])
    slices = box.slices([8, -2])
    assert slices == (slice(2, 4), slice(2, 5))

def test_invalid_boxes():
    with pytest.raises(ValueError):
        Box([0, 0], [1])
    with pytest.raises(ValueError):
        Box([0, 0, 0, 0], [1, 1, 1, 1])
    with pytest.raises(ValueError):
        as_int_vector([1, 2], 3)
