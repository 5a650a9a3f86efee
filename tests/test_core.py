import os
import tempfile
import unittest
from collections import Counter

import numpy as np
import pandas as pd

from islandga.config import GAConfig, load_config
from islandga.encoding import deserialize_individual, record_length, serialize_individual
from islandga.errors import InvariantViolation, WireFormatError
from islandga.individual import Individual
from islandga.model import Gene, Room, SchoolClass, TimeSlot, TimetableData
from islandga.operators import tournament_selection
from islandga.problem import generate_random, load_problem


class ScriptedRng:
    """Generador con valores fijados de antemano para operadores deterministas."""

    def __init__(self, ints=(), floats=()):
        self._ints = list(ints)
        self._floats = list(floats)

    def integers(self, high):
        value = self._ints.pop(0)
        assert 0 <= value < high
        return value

    def random(self):
        return self._floats.pop(0)


class RecordingRng:
    def __init__(self, seed):
        self._rng = np.random.default_rng(seed)
        self.drawn = []

    def integers(self, high):
        value = int(self._rng.integers(high))
        self.drawn.append(value)
        return value


def same_teacher_data(n_classes):
    classes = [SchoolClass(i, f"S{i}", 0, i, 10) for i in range(n_classes)]
    rooms = [Room(i, 20) for i in range(n_classes)]
    return TimetableData(classes, rooms, num_teachers=1, num_student_groups=n_classes)


def brute_force_fitness(genes, data):
    teacher, group, room = Counter(), Counter(), Counter()
    capacity = 0
    for g in genes:
        cls = data.get_class(g.class_id)
        slot = g.time_slot.absolute_slot
        teacher[(slot, cls.teacher_id)] += 1
        group[(slot, cls.student_group)] += 1
        room[(slot, g.room_id)] += 1
        if cls.required_capacity > data.get_room(g.room_id).capacity:
            capacity += 1
    clashes = sum(c - 1 for counter in (teacher, group, room) for c in counter.values())
    return clashes + capacity


class FitnessTests(unittest.TestCase):
    def test_single_class_always_perfect(self):
        data = TimetableData([SchoolClass(0, "Math", 0, 0, 10)], [Room(0, 20)], 1, 1)
        rng = np.random.default_rng(1)
        for _ in range(50):
            ind = Individual.create_random(data, rng)
            self.assertEqual(ind.fitness, 0)
            self.assertTrue(ind.is_perfect())

    def test_two_classes_same_teacher_same_slot(self):
        data = same_teacher_data(2)
        ind = Individual([Gene(0, TimeSlot(1, 3), 0), Gene(1, TimeSlot(1, 3), 1)], data)
        res = ind.evaluate()
        self.assertEqual(ind.fitness, 1)
        self.assertEqual((res.teacher, res.group, res.room, res.capacity), (1, 0, 0, 0))

    def test_three_way_clash_counts_two(self):
        data = same_teacher_data(3)
        genes = [Gene(i, TimeSlot(2, 5), i) for i in range(3)]
        self.assertEqual(Individual(genes, data).calculate_fitness(), 2)

    def test_capacity_violation(self):
        data = TimetableData([SchoolClass(0, "Art", 0, 0, 30)], [Room(0, 20), Room(1, 30)], 1, 1)
        self.assertEqual(Individual([Gene(0, TimeSlot(0, 0), 0)], data).fitness, 1)
        # capacidad igual a la requerida no es violación
        self.assertEqual(Individual([Gene(0, TimeSlot(0, 0), 1)], data).fitness, 0)

    def test_slots_on_different_days_do_not_clash(self):
        data = same_teacher_data(2)
        ind = Individual([Gene(0, TimeSlot(0, 3), 0), Gene(1, TimeSlot(1, 3), 0)], data)
        self.assertEqual(ind.fitness, 0)

    def test_matches_brute_force_count(self):
        data = generate_random(15, 3, 3, 3, seed=5)
        rng = np.random.default_rng(9)
        for _ in range(30):
            ind = Individual.create_random(data, rng)
            expected = brute_force_fitness(ind.genes, data)
            self.assertEqual(ind.fitness, expected)
            self.assertGreaterEqual(ind.fitness, 0)
            self.assertEqual(ind.is_perfect(), expected == 0)

    def test_fitness_is_cached_until_mutation(self):
        data = generate_random(6, 2, 2, 2, seed=3)
        ind = Individual.create_random(data, np.random.default_rng(0))
        self.assertFalse(ind.has_fitness)
        ind.fitness
        self.assertTrue(ind.has_fitness)
        ind.mutate(0.0, np.random.default_rng(0))
        self.assertTrue(ind.has_fitness)
        ind.mutate(1.0, np.random.default_rng(0))
        self.assertFalse(ind.has_fitness)


class IndividualTests(unittest.TestCase):
    def setUp(self):
        self.data = generate_random(8, 3, 3, 3, seed=11)
        rng = np.random.default_rng(4)
        self.a = Individual.create_random(self.data, rng)
        self.b = Individual.create_random(self.data, rng)

    def test_genes_indexed_by_class_id(self):
        for i, g in enumerate(self.a.genes):
            self.assertEqual(g.class_id, i)

    def test_misaligned_genes_raise(self):
        genes = list(self.a.genes)
        genes[0], genes[1] = genes[1], genes[0]
        with self.assertRaises(InvariantViolation):
            Individual(genes, self.data)

    def test_out_of_range_room_raises(self):
        genes = list(self.a.genes)
        genes[0] = Gene(0, genes[0].time_slot, self.data.num_rooms)
        with self.assertRaises(InvariantViolation):
            Individual(genes, self.data)

    def test_crossover_at_every_point(self):
        n = len(self.a.genes)
        for point in range(n):
            child = self.a.crossover_at(self.b, point)
            for i in range(n):
                expected = self.a.genes[i] if i < point else self.b.genes[i]
                self.assertEqual(child.genes[i], expected)
            self.assertFalse(child.has_fitness)

    def test_crossover_draws_point(self):
        child = self.a.crossover(self.b, ScriptedRng(ints=[3]))
        self.assertEqual(child.genes[:3], self.a.genes[:3])
        self.assertEqual(child.genes[3:], self.b.genes[3:])

    def test_mutation_changes_slot_or_room_never_both(self):
        for seed in range(20):
            ind = self.a.copy()
            before = list(ind.genes)
            ind.mutate(1.0, np.random.default_rng(seed))
            for old, new in zip(before, ind.genes):
                self.assertEqual(old.class_id, new.class_id)
                self.assertFalse(old.time_slot != new.time_slot and old.room_id != new.room_id)

    def test_mutation_scripted(self):
        data = TimetableData([SchoolClass(0, "A", 0, 0, 5), SchoolClass(1, "B", 1, 1, 5)],
                             [Room(0, 10), Room(1, 10)], 2, 2)
        ind = Individual([Gene(0, TimeSlot(0, 0), 0), Gene(1, TimeSlot(0, 0), 0)], data)
        # gen 0: muta y cambia el slot a (3, 5); gen 1: muta y cambia el aula a 1
        ind.mutate(0.5, ScriptedRng(ints=[3, 5, 1], floats=[0.0, 0.2, 0.1, 0.9]))
        self.assertEqual(ind.genes[0], Gene(0, TimeSlot(3, 5), 0))
        self.assertEqual(ind.genes[1], Gene(1, TimeSlot(0, 0), 1))

    def test_copy_is_independent(self):
        self.a.calculate_fitness()
        clone = self.a.copy()
        self.assertTrue(clone.has_fitness)
        self.assertEqual(clone.fitness, self.a.fitness)
        original = self.a.genes[0]
        clone.genes[0] = Gene(0, TimeSlot(4, 7), 0)
        self.assertIsNot(clone.genes, self.a.genes)
        self.assertEqual(self.a.genes[0], original)


class TournamentTests(unittest.TestCase):
    def setUp(self):
        data = generate_random(10, 2, 2, 2, seed=2)
        rng = np.random.default_rng(8)
        self.population = [Individual.create_random(data, rng) for _ in range(20)]

    def test_never_worse_than_sample_minimum(self):
        for seed in range(30):
            rng = RecordingRng(seed)
            winner = tournament_selection(self.population, rng, 5)
            self.assertEqual(len(rng.drawn), 5)
            sampled = [self.population[i].fitness for i in rng.drawn]
            self.assertEqual(winner.fitness, min(sampled))

    def test_ties_keep_first_sampled(self):
        first, second = self.population[0], self.population[1]
        second = second.copy()
        second._fitness = first.fitness
        population = [first, second]
        winner = tournament_selection(population, ScriptedRng(ints=[1, 0]), 2)
        self.assertIs(winner, second)


class EncodingTests(unittest.TestCase):
    def setUp(self):
        self.data = generate_random(12, 4, 3, 3, seed=21)
        self.ind = Individual.create_random(self.data, np.random.default_rng(6))

    def test_record_layout(self):
        record = serialize_individual(self.ind)
        self.assertEqual(len(record), record_length(12))
        self.assertEqual(record[0], self.ind.fitness)
        g = self.ind.genes[2]
        self.assertEqual(list(record[1 + 2 * 4: 1 + 3 * 4]),
                         [g.class_id, g.time_slot.day, g.time_slot.hour, g.room_id])

    def test_roundtrip_recomputes_fitness(self):
        record = serialize_individual(self.ind)
        record[0] = 999
        decoded = deserialize_individual(record, self.data)
        self.assertEqual(decoded.genes, self.ind.genes)
        self.assertEqual(decoded.fitness, self.ind.fitness)

    def test_wrong_length_raises(self):
        record = serialize_individual(self.ind)
        with self.assertRaises(WireFormatError):
            deserialize_individual(record[:-1], self.data)

    def test_out_of_range_values_raise(self):
        record = serialize_individual(self.ind)
        record[2] = 9  # día inválido del primer gen
        with self.assertRaises(WireFormatError):
            deserialize_individual(record, self.data)


class ConfigTests(unittest.TestCase):
    def test_from_dict_ignores_unknown_keys(self):
        cfg = GAConfig.from_dict({"population_size": 30, "unknown": 1})
        self.assertEqual(cfg.population_size, 30)
        self.assertEqual(cfg.elite_count, 5)

    def test_invalid_values_raise(self):
        with self.assertRaises(ValueError):
            GAConfig(population_size=4, elite_count=5)
        with self.assertRaises(ValueError):
            GAConfig(mutation_rate=1.5)

    def test_load_config(self):
        with tempfile.TemporaryDirectory() as tmp:
            self.assertEqual(load_config(os.path.join(tmp, "missing.yaml")), GAConfig())
            path = os.path.join(tmp, "config.yaml")
            with open(path, "w", encoding="utf-8") as fh:
                fh.write("num_islands: 2\nmigration_interval: 10\n")
            cfg = load_config(path)
            self.assertEqual((cfg.num_islands, cfg.migration_interval), (2, 10))
            with open(path, "w", encoding="utf-8") as fh:
                fh.write("- 1\n- 2\n")
            with self.assertRaises(ValueError):
                load_config(path)

    def test_seeds_and_cadence(self):
        cfg = GAConfig()
        self.assertEqual([cfg.island_seed(r) for r in range(3)], [12345, 13345, 14345])
        self.assertFalse(cfg.migration_due(0))
        self.assertTrue(cfg.migration_due(50))
        self.assertFalse(cfg.migration_due(51))


class ProblemTests(unittest.TestCase):
    def test_generate_random_is_reproducible(self):
        a = generate_random(40, 8, 10, 6, seed=42)
        b = generate_random(40, 8, 10, 6, seed=42)
        self.assertEqual(a, b)
        self.assertTrue(all(20 <= r.capacity <= 50 for r in a.rooms))
        self.assertTrue(all(15 <= c.required_capacity <= 40 for c in a.classes))
        self.assertTrue(all(0 <= c.teacher_id < 10 and 0 <= c.student_group < 6 for c in a.classes))
        self.assertEqual([c.id for c in a.classes], list(range(40)))

    def test_load_problem_renumbers_ids(self):
        with tempfile.TemporaryDirectory() as tmp:
            pd.DataFrame(
                {
                    "id": [7, 3],
                    "subject": ["Math", "Art"],
                    "teacher_id": [1, 0],
                    "student_group": [0, 2],
                    "required_capacity": [25, 10],
                }
            ).to_csv(os.path.join(tmp, "classes.csv"), index=False)
            pd.DataFrame({"id": [10, 11], "capacity": [30, 15]}).to_csv(
                os.path.join(tmp, "rooms.csv"), index=False
            )
            data = load_problem(tmp)
        self.assertEqual([c.id for c in data.classes], [0, 1])
        self.assertEqual(data.classes[0].subject, "Art")
        self.assertEqual([r.capacity for r in data.rooms], [30, 15])
        self.assertEqual((data.num_teachers, data.num_student_groups), (2, 3))

    def test_load_problem_rejects_negative_ids(self):
        for column in ("teacher_id", "student_group"):
            row = {"id": [0], "subject": ["Math"], "teacher_id": [0], "student_group": [0],
                   "required_capacity": [10]}
            row[column] = [-1]
            with tempfile.TemporaryDirectory() as tmp:
                pd.DataFrame(row).to_csv(os.path.join(tmp, "classes.csv"), index=False)
                pd.DataFrame({"id": [0], "capacity": [30]}).to_csv(
                    os.path.join(tmp, "rooms.csv"), index=False
                )
                with self.assertRaisesRegex(ValueError, column):
                    load_problem(tmp)


if __name__ == "__main__":
    unittest.main()
