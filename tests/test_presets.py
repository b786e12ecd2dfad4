"""Tests for preset scenes and JSON scene files.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
"""

import json

import pytest


class TestPresets:
    def test_normals_scene(self):
        from spheretrace.camera.pinhole import PinholeCamera, ViewportCamera
        from spheretrace.scene.presets import create_normals_scene

        scene, camera = create_normals_scene()
        assert scene.get_sphere_count() == 2
        assert isinstance(camera, ViewportCamera)

        _, wide = create_normals_scene(aspect_ratio=1.0)
        assert isinstance(wide, PinholeCamera)

    def test_materials_scene(self):
        from spheretrace.scene.manager import MaterialType
        from spheretrace.scene.presets import create_materials_scene

        scene, camera = create_materials_scene(aspect_ratio=2.0)
        assert scene.get_sphere_count() == 5
        assert scene.get_material_count() == 4
        types = [m.material_type for m in scene.materials]
        assert types == [
            MaterialType.LAMBERTIAN,
            MaterialType.LAMBERTIAN,
            MaterialType.METAL,
            MaterialType.DIELECTRIC,
        ]
        # The hollow glass shell shares one material
        assert scene.spheres[3].material_id == scene.spheres[4].material_id
        assert scene.spheres[4].radius < 0
        assert camera.vfov == 90.0

    def test_random_scene_fits_capacity(self):
        from spheretrace.scene.manager import SceneManager
        from spheretrace.scene.presets import create_random_scene

        scene, camera = create_random_scene(seed=3)
        assert 4 < scene.get_sphere_count() <= SceneManager.get_max_spheres()
        assert scene.materials[0].params["texture"] == "checkered"
        assert camera.lookfrom == (13.0, 2.0, 3.0)
        assert camera.vfov == 20.0

    def test_random_scene_is_deterministic(self):
        from spheretrace.scene.presets import create_random_scene

        first = create_random_scene(seed=7)[0].to_dict()
        second = create_random_scene(seed=7)[0].to_dict()
        other = create_random_scene(seed=8)[0].to_dict()
        assert first == second
        assert first != other

    @pytest.mark.parametrize("name", ["normals", "materials", "random"])
    def test_build_scene(self, name):
        from spheretrace.scene.presets import build_scene

        scene, camera = build_scene(name, aspect_ratio=1.5)
        assert scene.get_sphere_count() > 0
        camera.validate()

    def test_unknown_scene(self):
        from spheretrace.scene.presets import build_scene

        with pytest.raises(ValueError, match="Unknown scene"):
            build_scene("teapot", aspect_ratio=1.0)


class TestSceneFiles:
    def test_save_and_load(self, tmp_path):
        from spheretrace.scene.presets import (
            create_materials_scene,
            load_scene_file,
            save_scene_file,
        )

        scene, camera = create_materials_scene(aspect_ratio=2.0)
        expected = scene.to_dict()
        path = tmp_path / "materials.json"
        save_scene_file(scene, camera, path)

        loaded, loaded_camera = load_scene_file(path, aspect_ratio=1.0)
        assert loaded.to_dict() == expected
        # The stored camera wins over the requested aspect ratio
        assert loaded_camera == camera

    def test_missing_camera_uses_front_view(self, tmp_path):
        from spheretrace.camera.pinhole import PinholeCamera
        from spheretrace.scene.presets import load_scene_file

        path = tmp_path / "scene.json"
        path.write_text(
            json.dumps(
                {
                    "materials": [{"type": "dielectric", "refractive_index": 1.5}],
                    "spheres": [{"center": [0, 0, -1], "radius": 0.5, "material_id": 0}],
                }
            )
        )
        scene, camera = load_scene_file(path, aspect_ratio=1.25)
        assert scene.get_sphere_count() == 1
        assert isinstance(camera, PinholeCamera)
        assert camera.lookfrom == (0.0, 0.0, 0.0)
        assert camera.aspect_ratio == 1.25

    @pytest.mark.parametrize(
        "content,message",
        [
            ("{not json", "not valid JSON"),
            ("[1, 2, 3]", "JSON object"),
            ('{"materials": [{"type": "plasma"}], "spheres": []}', "Unknown material type"),
            (
                '{"materials": [], "spheres": [], "camera": {"type": "fisheye"}}',
                "Unknown camera type",
            ),
        ],
    )
    def test_rejects_bad_files(self, tmp_path, content, message):
        from spheretrace.scene.presets import load_scene_file

        path = tmp_path / "bad.json"
        path.write_text(content)
        with pytest.raises(ValueError, match=message):
            load_scene_file(path, aspect_ratio=1.0)

    def test_missing_file(self, tmp_path):
        from spheretrace.scene.presets import load_scene_file

        with pytest.raises(ValueError, match="Cannot read"):
            load_scene_file(tmp_path / "missing.json", aspect_ratio=1.0)
