import unittest

from tilebake.classifier import (
    DefaultObjectClassifier,
    ObjectClassifier,
    SpriteContext,
    collider_shape,
)
from tilebake.errors import MapParseError, UnsupportedShapeError
from tilebake.schema import (
    BallShape,
    PhysicsDetail,
    PolygonShape,
    RectShape,
    StaticDetail,
    TileDetail,
    Transform,
)
from tilebake.tmx_reader import (
    MapObject,
    SHAPE_ELLIPSE,
    SHAPE_POINT,
    SHAPE_POLYGON,
    SHAPE_POLYLINE,
)

CTX = SpriteContext(atlas_index=0, sprite_index=2, name="map_sprite_sheet_0")


class TestColliderShape(unittest.TestCase):
    def test_rectangle(self):
        obj = MapObject(id=1, width=8, height=4)
        self.assertEqual(collider_shape(obj), RectShape(8, 4))

    def test_circle(self):
        obj = MapObject(id=1, width=6, height=6, shape=SHAPE_ELLIPSE)
        self.assertEqual(collider_shape(obj), BallShape(3.0))

    def test_polygon_is_flipped(self):
        obj = MapObject(id=1, shape=SHAPE_POLYGON, points=[(0, 0), (4, 0), (0, 4)])
        self.assertEqual(collider_shape(obj), PolygonShape(((0, 0.0), (4, 0.0), (0, -4.0))))

    def test_unsupported_shapes(self):
        cases = [
            MapObject(id=1, width=6, height=3, shape=SHAPE_ELLIPSE),
            MapObject(id=2, shape=SHAPE_POINT),
            MapObject(id=3, shape=SHAPE_POLYLINE, points=[(0, 0), (1, 1)]),
            MapObject(id=4, shape=SHAPE_POLYGON, points=[(0, 0), (1, 1)]),
            MapObject(id=5, width=0, height=4),
        ]
        for obj in cases:
            with self.subTest(obj=obj.id):
                with self.assertRaises(UnsupportedShapeError):
                    collider_shape(obj)


class TestBaseClassifier(unittest.TestCase):
    def test_tiles_become_tiles_and_objects_are_dropped(self):
        classifier = ObjectClassifier()
        self.assertEqual(classifier.classify_tile(CTX, Transform(4.0, -4.0, 0.0), 0), TileDetail())
        self.assertIsNone(classifier.classify_object(MapObject(id=1, type="dynamic"), None, 0))


class TestDefaultClassifier(unittest.TestCase):
    def setUp(self):
        self.classifier = DefaultObjectClassifier()

    def test_static_tile_object(self):
        obj = MapObject(id=1, type="static", x=16, y=16, width=4, height=6, gid=6)
        outcome = self.classifier.classify_object(obj, CTX, 1)
        self.assertEqual(outcome.detail, StaticDetail())
        self.assertEqual(outcome.transform, Transform(18.0, -13.0, 1.0))
        self.assertTrue(outcome.with_sprite)

    def test_static_without_image_is_dropped(self):
        obj = MapObject(id=1, type="static", width=4, height=4)
        self.assertIsNone(self.classifier.classify_object(obj, None, 0))

    def test_static_must_be_rectangle(self):
        obj = MapObject(id=1, type="static", width=4, height=4, shape=SHAPE_ELLIPSE, gid=1)
        with self.assertRaises(UnsupportedShapeError):
            self.classifier.classify_object(obj, CTX, 0)

    def test_dynamic_body(self):
        obj = MapObject(id=1, type="dynamic", x=0, y=0, width=8, height=8)
        outcome = self.classifier.classify_object(obj, None, 0)
        detail = outcome.detail
        self.assertIsInstance(detail, PhysicsDetail)
        self.assertFalse(detail.collider_only)
        self.assertEqual(detail.location, (4.0, -4.0))
        self.assertTrue(detail.gravity_enabled)
        self.assertFalse(detail.no_rotate)
        collider = detail.colliders[0]
        self.assertEqual(collider.shape, RectShape(8, 8))
        self.assertEqual((collider.density, collider.restitution, collider.friction), (1.0, 0.8, 0.5))
        self.assertIsNone(collider.location)
        self.assertEqual(outcome.transform, Transform(4.0, -4.0, 0.0))

    def test_collision_collider_only(self):
        obj = MapObject(id=1, type="collision", x=2, y=2, width=6, height=6, shape=SHAPE_ELLIPSE)
        detail = self.classifier.classify_object(obj, None, 2).detail
        self.assertTrue(detail.collider_only)
        self.assertIsNone(detail.location)
        self.assertEqual(detail.colliders[0].location, (5.0, -5.0))
        self.assertEqual(detail.colliders[0].shape, BallShape(3.0))

    def test_properties_override_defaults(self):
        obj = MapObject(
            id=1, type="dynamic", width=2, height=2,
            properties={
                "density": 2.5,
                "restitution": "0.1",
                "friction": 0,
                "is_sensor": True,
                "gravity_enabled": "false",
                "no_rotate": True,
            },
        )
        detail = self.classifier.classify_object(obj, None, 0).detail
        collider = detail.colliders[0]
        self.assertEqual((collider.density, collider.restitution, collider.friction), (2.5, 0.1, 0.0))
        self.assertTrue(collider.is_sensor)
        self.assertFalse(detail.gravity_enabled)
        self.assertTrue(detail.no_rotate)

    def test_bad_numeric_property(self):
        obj = MapObject(id=1, type="dynamic", width=2, height=2, properties={"density": "heavy"})
        with self.assertRaises(MapParseError):
            self.classifier.classify_object(obj, None, 0)

    def test_unknown_type_dropped(self):
        self.assertIsNone(self.classifier.classify_object(MapObject(id=1, type="spawn"), None, 0))
        self.assertIsNone(self.classifier.classify_object(MapObject(id=2), CTX, 0))

    def test_dynamic_with_unsupported_shape(self):
        obj = MapObject(id=1, type="dynamic", shape=SHAPE_POINT)
        with self.assertRaises(UnsupportedShapeError):
            self.classifier.classify_object(obj, None, 0)


if __name__ == '__main__':
    unittest.main()
