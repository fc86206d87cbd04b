"""
Unit tests for target loading.
"""

import pytest
from core.targets import Point, PointCloud, load_targets_from_csv, parse_target_line


class TestParseTargetLine:

    @pytest.mark.parametrize("line,expected", [
        ("1.5,2.5", Point(1.5, 2.5)),
        ("1.5;2.5\n", Point(1.5, 2.5)),
        ("10 20", Point(10, 20)),
        ("10\t20\r\n", Point(10, 20)),
        ("-0.5,49", Point(-0.5, 49)),
    ])
    def test_valid(self, line, expected):
        assert parse_target_line(line) == expected

    @pytest.mark.parametrize("line", [
        "x,y",          # header
        "1,2,3",        # three values
        "1, 2",         # separator plus space gives three tokens
        "5",
        "",
        "nan,1",
        "inf,1",
        "1,-inf",
    ])
    def test_skipped(self, line):
        assert parse_target_line(line) is None


class TestPointCloud:

    def test_add_keeps_order(self):
        cloud = PointCloud()
        cloud.add(1, 2)
        cloud.add_point(Point(3, 4))
        assert cloud.points == [Point(1, 2), Point(3, 4)]
        assert cloud.number_of_points == 2

    def test_points_is_copy(self):
        cloud = PointCloud([Point(1, 1)])
        cloud.points.append(Point(9, 9))
        assert len(cloud) == 1


class TestLoadTargets:

    def test_loads_valid_lines_only(self, tmp_path):
        path = tmp_path / "targets.csv"
        path.write_text("x,y\n25,25\n49.5;49.5\n\ngarbage\n0.5\t0.5\n")

        cloud = load_targets_from_csv(path)

        assert cloud.points == [Point(25, 25), Point(49.5, 49.5), Point(0.5, 0.5)]

    def test_skips_non_finite_lines(self, tmp_path):
        path = tmp_path / "targets.csv"
        path.write_text("1,1\ninf,1\n2;infinity\n")

        assert load_targets_from_csv(path).points == [Point(1, 1)]

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_targets_from_csv(tmp_path / "missing.csv")
