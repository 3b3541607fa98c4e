from pyproj import Transformer

from nhspd.pipeline.coordinates import grid_to_wgs84


def test_grid_to_wgs84_round_trips_through_bng():
    transformer = Transformer.from_crs("EPSG:4326", "EPSG:27700", always_xy=True)
    easting, northing = transformer.transform(-0.1416, 51.5010)

    result = grid_to_wgs84(round(easting), round(northing))

    assert result is not None
    lat, lon = result
    assert abs(lat - 51.5010) < 1e-4
    assert abs(lon - (-0.1416)) < 1e-4


def test_grid_to_wgs84_known_postcode_is_in_london():
    lat, lon = grid_to_wgs84(529090, 179645)
    assert 51.4 < lat < 51.6
    assert -0.3 < lon < 0.0


def test_grid_to_wgs84_missing_coordinate_is_none():
    assert grid_to_wgs84(None, 179645) is None
    assert grid_to_wgs84(529090, None) is None
