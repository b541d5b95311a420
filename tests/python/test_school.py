from __future__ import annotations

from dataclasses import replace

from pygame.math import Vector2
from pytest import approx

from shoal.config import BehaviorConfig, PopulationConfig, SimulationConfig
from shoal.sim.core.fish import Fish
from shoal.sim.core.school import School
from shoal.sim.systems.steering import step_fish


def _config(**kwargs) -> SimulationConfig:
    return SimulationConfig(seed=11, **kwargs)


def test_population_follows_viewport_density():
    school = School(_config(width=800.0, height=600.0))

    assert len(school.fish) == school.target_population(800.0, 600.0)
    assert school.target_population(401.0, 299.0) == int(401.0 * 299.0 * 0.00025)
    assert 100 < len(school.fish) <= 120


def test_fixed_count_ignores_viewport_area():
    school = School(_config(population=PopulationConfig(fixed_count=7)))
    school.resize(2000.0, 2000.0)

    assert len(school.fish) == 7


def test_shrinking_keeps_the_leading_fish():
    school = School(_config())
    before = len(school.fish)
    target = school.target_population(400.0, 300.0)
    survivors = list(school.fish[:target])

    delta = school.resize(400.0, 300.0)

    assert delta == target - before
    assert len(school.fish) == target
    assert all(kept is original for kept, original in zip(school.fish, survivors))


def test_growing_appends_fresh_fish_inside_new_viewport():
    school = School(_config(width=400.0, height=300.0))
    existing = list(school.fish)

    delta = school.resize(1000.0, 800.0)

    assert delta == school.target_population(1000.0, 800.0) - len(existing)
    assert school.fish[: len(existing)] == existing
    for fish in school.fish[len(existing):]:
        assert 0.0 <= fish.position.x < 1000.0
        assert 0.0 <= fish.position.y < 800.0
        assert not fish.breaking_away


def test_repeated_resize_is_a_no_op():
    school = School(_config())
    school.resize(640.0, 480.0)
    before = [(fish, Vector2(fish.position), Vector2(fish.velocity)) for fish in school.fish]

    assert school.resize(640.0, 480.0) == 0

    assert len(school.fish) == len(before)
    for fish, (original, position, velocity) in zip(school.fish, before):
        assert fish is original
        assert fish.position == position
        assert fish.velocity == velocity


def test_speed_bound_and_wrap_hold_every_tick():
    behavior = BehaviorConfig(breakaway_chance=0.02)
    config = _config(width=300.0, height=200.0, behavior=behavior, population=PopulationConfig(fixed_count=40))
    school = School(config)
    pointer = Vector2(150.0, 100.0)

    for tick in range(150):
        school.tick(tick, pointer if tick % 3 else None)
        for fish in school.fish:
            assert fish.velocity.length() <= config.fish.max_speed + 1e-9
            assert 0.0 <= fish.position.x <= school.width
            assert 0.0 <= fish.position.y <= school.height


def test_later_fish_see_earlier_updates_within_a_tick(scripted_rng):
    config = _config(population=PopulationConfig(fixed_count=0))
    school = School(config, rng=scripted_rng())
    first = Fish(position=Vector2(100.0, 100.0), velocity=Vector2(), size=3.0, color=(1, 2, 3, 255))
    second = Fish(position=Vector2(130.0, 100.0), velocity=Vector2(), size=3.0, color=(1, 2, 3, 255))
    school.fish.extend([first, second])

    context = school.context()
    first_after = step_fish(first, [first, second], None, context)
    in_place = step_fish(second, [first_after, second], None, context)
    double_buffered = step_fish(second, [first, second], None, context)

    school.tick(0)

    assert school.fish[0].velocity == first_after.velocity
    assert school.fish[1].velocity.x == approx(in_place.velocity.x)
    assert school.fish[1].velocity.x != approx(double_buffered.velocity.x)


def test_tick_metrics_report_population_and_speed():
    config = _config(population=PopulationConfig(fixed_count=12))
    school = School(config, track_neighbors=True)

    metrics = school.tick(0)

    assert metrics.tick == 0
    assert metrics.population == 12
    assert metrics.pair_checks == 12 * 11
    assert metrics.neighbors_seen % 2 == 0
    assert metrics.average_speed == approx(sum(f.speed for f in school.fish) / 12)
    assert metrics.peak_speed == approx(max(f.speed for f in school.fish))
    assert school.metrics is metrics


def test_snapshot_and_frames_expose_render_fields():
    config = _config(population=PopulationConfig(fixed_count=3), preset="full")
    school = School(config)
    school.tick(0)

    snapshot = school.snapshot(1)
    frames = list(school.frames())

    assert snapshot.tick == 1
    assert snapshot.viewport.width == approx(800.0)
    assert snapshot.metadata.seed == 11
    assert snapshot.metadata.preset == "full"
    assert len(snapshot.fish) == len(frames) == 3
    for payload, (x, y, heading, size, color), fish in zip(snapshot.fish, frames, school.fish):
        assert payload["x"] == approx(x)
        assert payload["y"] == approx(y)
        assert payload["heading"] == approx(heading)
        assert payload["size"] == approx(size)
        assert tuple(payload["color"]) == color
        assert heading == approx(fish.heading)
        assert payload["speed"] == approx(Vector2(payload["vx"], payload["vy"]).length())


def test_snapshot_before_first_tick_has_metrics():
    school = School(_config(population=PopulationConfig(fixed_count=2)))

    snapshot = school.snapshot(0)

    assert snapshot.metrics.population == 2
    assert snapshot.metrics.tick_duration_ms == 0.0


def test_reset_with_seed_reproduces_initial_school():
    school = School(_config(population=PopulationConfig(fixed_count=5)))
    initial = [(Vector2(f.position), Vector2(f.velocity), f.size, f.color) for f in school.fish]
    for tick in range(5):
        school.tick(tick)

    school.reset()

    assert school.metrics is None
    restored = [(f.position, f.velocity, f.size, f.color) for f in school.fish]
    assert restored == initial


def test_attraction_preset_skips_flocking(scripted_rng):
    config = _config(population=PopulationConfig(fixed_count=0))
    config = replace(config, behavior=BehaviorConfig(flocking=False, drift=False, breakaway=False))
    school = School(config, rng=scripted_rng())
    school.fish.extend(
        [
            Fish(position=Vector2(100.0, 100.0), velocity=Vector2(), size=2.0, color=(0, 0, 0, 255)),
            Fish(position=Vector2(105.0, 100.0), velocity=Vector2(), size=2.0, color=(0, 0, 0, 255)),
        ]
    )

    school.tick(0)

    assert all(fish.velocity == Vector2() for fish in school.fish)
