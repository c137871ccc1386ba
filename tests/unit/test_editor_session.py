from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from lumiq.domain.entities.edit_state import AdjustmentField, AdjustmentType, EditState, Tool
from lumiq.domain.errors import PreconditionError
from lumiq.domain.services.color_matrix_service import ColorMatrixService
from lumiq.domain.services.editor_session import EditorSession, flatten
from lumiq.domain.services.geometry_service import GeometryService


@pytest.fixture()
def session(gradient_rgba) -> EditorSession:
    s = EditorSession()
    s.load_image(gradient_rgba)
    return s


def test_slider_then_rotate_then_undo(session):
    session.set_adjustment_field(AdjustmentField.BRIGHTNESS, 0.5)
    assert session.state.brightness == 0.5
    assert session.history.undo_depth == 0

    session.rotate_quarter_turn()
    assert session.state.rotation_degrees == 90.0
    assert session.history.undo_depth == 1

    assert session.undo() is True
    assert session.state.brightness == 0.5
    assert session.state.rotation_degrees == 0.0

    assert session.redo() is True
    assert session.state.rotation_degrees == 90.0
    assert session.state.brightness == 0.5


def test_set_crop_clamps_independently(session):
    session.set_crop(-0.2, 0.1, 1.5, 0.9)
    assert session.state.crop == (0.0, 0.1, 1.0, 0.9)
    assert session.history.undo_depth == 0


def test_four_quarter_turns_return_to_start(session):
    for _ in range(4):
        session.rotate_quarter_turn()
    assert session.state.rotation_degrees == 0.0
    assert session.history.undo_depth == 4


def test_undo_redo_on_empty_history_are_noops(session):
    before = session.state
    assert session.undo() is False
    assert session.redo() is False
    assert session.state is before


def test_export_without_image_fails():
    s = EditorSession()
    assert not s.has_image
    with pytest.raises(PreconditionError, match="no image loaded"):
        s.export_flattened()
    with pytest.raises(PreconditionError):
        s.render_preview()


def test_load_image_resets_state_and_history(session, gradient_rgba):
    session.set_adjustment_field("warmth", 0.7)
    session.rotate_quarter_turn()
    session.select_tool(Tool.CROP)
    session.load_image(gradient_rgba[:2, :3])
    assert session.state == EditState()
    assert session.history.undo_depth == 0
    assert session.history.redo_depth == 0
    assert session.active_tool is Tool.NONE
    assert session.source_size == (3, 2)


def test_load_image_takes_a_copy(gradient_rgba):
    s = EditorSession()
    s.load_image(gradient_rgba)
    original = gradient_rgba.copy()
    gradient_rgba[...] = 0
    assert np.array_equal(s.export_flattened(), original)


def test_load_rgb_adds_opaque_alpha():
    s = EditorSession()
    s.load_image(np.zeros((2, 2, 3), dtype=np.uint8))
    out = s.export_flattened()
    assert out.shape == (2, 2, 4)
    assert (out[..., 3] == 255).all()


@pytest.mark.parametrize(
    "pixels",
    [
        np.zeros((4, 4), dtype=np.uint8),
        np.zeros((4, 4, 2), dtype=np.uint8),
        np.zeros((0, 4, 4), dtype=np.uint8),
        np.zeros((4, 4, 4), dtype=np.float32),
    ],
)
def test_load_rejects_bad_buffers(pixels):
    with pytest.raises(ValueError):
        EditorSession().load_image(pixels)


def test_neutral_export_equals_source(session, gradient_rgba):
    out = session.export_flattened()
    assert np.array_equal(out, gradient_rgba)


def test_preview_with_filter_baked_equals_export(session):
    session.set_adjustment_field("brightness", 0.15)
    session.set_adjustment_field("contrast", 1.3)
    session.set_adjustment_field("saturation", 0.4)
    session.set_adjustment_field("warmth", -0.6)
    session.rotate_quarter_turn()
    session.set_crop(0.1, 0.2, 0.85, 0.75)

    frame = session.render_preview()
    baked = ColorMatrixService.apply_color_transform(frame.pixels, frame.color_transform)
    assert np.array_equal(baked, session.export_flattened())


def test_preview_does_not_bake_color(session, gradient_rgba):
    session.set_adjustment_field("brightness", 1.0)
    frame = session.render_preview()
    assert not frame.color_transform.is_identity()
    assert np.array_equal(frame.pixels, gradient_rgba)


def test_export_does_not_mutate_session(session):
    session.rotate_quarter_turn()
    session.set_adjustment_field("saturation", 0.0)
    state = session.state
    depth = session.history.undo_depth
    session.export_flattened()
    session.render_preview()
    assert session.state is state
    assert session.history.undo_depth == depth


def test_export_order_is_geometry_then_color(session, gradient_rgba):
    session.rotate_quarter_turn()
    session.set_crop(0.0, 0.5, 1.0, 1.0)
    session.set_adjustment_field("contrast", 0.6)
    state = session.state
    expected = ColorMatrixService.apply_color_transform(
        GeometryService.apply_state(gradient_rgba, state),
        ColorMatrixService.transform_for_state(state),
    )
    assert np.array_equal(session.export_flattened(), expected)
    assert session.export_flattened().shape[:2] == (2, 6)


def test_submit_export_uses_snapshot(session, gradient_rgba):
    session.set_adjustment_field("brightness", -0.4)
    snapshot = session.state
    with ThreadPoolExecutor(max_workers=1) as pool:
        future = session.submit_export(pool)
        session.set_adjustment_field("brightness", 0.9)
        session.rotate_quarter_turn()
        result = future.result()
    assert np.array_equal(result, flatten(gradient_rgba, snapshot))


def test_select_rotate_tool_rotates(session):
    session.select_tool(Tool.ROTATE)
    assert session.state.rotation_degrees == 90.0
    assert session.active_tool is Tool.NONE
    assert session.history.undo_depth == 1


def test_select_tool_toggles(session):
    session.select_tool(Tool.CROP)
    assert session.active_tool is Tool.CROP
    session.select_tool(Tool.CROP)
    assert session.active_tool is Tool.NONE


def test_adjust_tool_defaults_to_brightness_slider(session):
    session.select_tool("adjust")
    assert session.active_tool is Tool.ADJUST
    assert session.active_adjustment is AdjustmentType.BRIGHTNESS
    session.select_adjustment(AdjustmentType.CONTRAST)
    session.update_active_adjustment(1.4)
    assert session.state.contrast == 1.4
    assert session.history.undo_depth == 0
    session.select_tool(Tool.CROP)
    assert session.active_adjustment is None


def test_update_active_adjustment_without_selection_is_noop(session):
    before = session.state
    assert session.update_active_adjustment(0.8) is before


def test_preview_frame_is_rotated_but_uncropped(session, gradient_rgba):
    session.rotate_quarter_turn()
    session.set_crop(0.25, 0.0, 0.75, 0.5)
    frame = session.render_preview()
    assert np.array_equal(frame.frame, np.rot90(gradient_rgba, k=-1))
    rect = frame.crop_rect
    cut = frame.frame[rect.y : rect.y + rect.height, rect.x : rect.x + rect.width]
    assert np.array_equal(cut, frame.pixels)
