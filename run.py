import argparse
import logging
from pathlib import Path

import pandas as pd

from islandga.config import GAConfig, load_config
from islandga.driver import RunResult, run_message_passing, run_shared_memory
from islandga.individual import Individual
from islandga.model import DAY_NAMES, TimetableData
from islandga.problem import from_config, load_problem

MODES = ("shared", "threads", "processes")


def individual_to_dataframe(best: Individual, data: TimetableData) -> pd.DataFrame:
    rows = []
    for g in best.genes:
        cls = data.get_class(g.class_id)
        room = data.get_room(g.room_id)
        rows.append(
            {
                "Clase": g.class_id,
                "Materia": cls.subject,
                "Docente": cls.teacher_id,
                "Grupo": cls.student_group,
                "Aula": g.room_id,
                "Capacidad_Aula": room.capacity,
                "Alumnos": cls.required_capacity,
                "Dia": DAY_NAMES[g.time_slot.day],
                "Hora": f"{8 + g.time_slot.hour:02d}:00",
            }
        )
    df = pd.DataFrame(rows)
    if df.empty:
        return df
    return df.sort_values(["Dia", "Hora", "Aula"], key=_day_order, kind="stable").reset_index(drop=True)


def _day_order(col: pd.Series) -> pd.Series:
    if col.name == "Dia":
        return col.map({d: i for i, d in enumerate(DAY_NAMES)})
    return col


def print_timetable(solution: Individual, data: TimetableData):
    print("\nHORARIO:")
    print("-" * 70)
    for day in range(data.days_per_week):
        print("\n" + DAY_NAMES[day].upper())
        for hour in range(data.hours_per_day):
            cells = []
            for g in solution.genes:
                if g.time_slot.day == day and g.time_slot.hour == hour:
                    cls = data.get_class(g.class_id)
                    cells.append(f"[{cls.subject}, D{cls.teacher_id}, G{cls.student_group}, A{g.room_id}]")
            print(f"  {8 + hour:2d}:00 - " + (" ".join(cells) if cells else "-"))


def export_outputs(result: RunResult, data: TimetableData, mode: str, out_dir: Path):
    out_dir.mkdir(parents=True, exist_ok=True)
    individual_to_dataframe(result.best, data).to_csv(out_dir / "schedule.csv", index=False)
    if result.history:
        pd.DataFrame(result.history).to_csv(out_dir / "history.csv", index=False)
    breakdown = result.best.evaluate()
    metrics = {
        "mode": mode,
        "best_fitness": breakdown.penalty,
        "teacher": breakdown.teacher,
        "group": breakdown.group,
        "room": breakdown.room,
        "capacity": breakdown.capacity,
        "time_sec": result.elapsed,
        "generations_ran": result.generations,
    }
    pd.DataFrame([metrics]).to_csv(out_dir / "metrics.csv", index=False)


def main():
    parser = argparse.ArgumentParser(description="AG por islas para horarios semanales")
    parser.add_argument("--config", default="config.yaml", help="Ruta al archivo de configuración")
    parser.add_argument("--mode", choices=MODES, default="shared", help="Sustrato de ejecución de las islas")
    parser.add_argument("--data_dir", default=None, help="Directorio con classes.csv y rooms.csv (si no, instancia aleatoria)")
    parser.add_argument("--out", default="outputs", help="Directorio de salida")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    cfg: GAConfig = load_config(args.config)
    data = load_problem(args.data_dir) if args.data_dir else from_config(cfg)

    print("=" * 70)
    print("ALGORITMO GENÉTICO POR ISLAS - HORARIOS")
    print("=" * 70)
    print(f"Problema: {data}")
    print(f"Modo: {args.mode} | Islas: {cfg.num_islands} | Población por isla: {cfg.population_size}")
    print(f"Población total: {cfg.population_size * cfg.num_islands}")
    print(f"Migración cada {cfg.migration_interval} generaciones")
    print("=" * 70)

    if args.mode == "shared":
        result = run_shared_memory(data, cfg)
    else:
        result = run_message_passing(data, cfg, backend=args.mode)

    print("\n--- MEJOR SOLUCIÓN ---")
    print(f"Fitness: {result.best.fitness} | Generaciones: {result.generations} | Tiempo: {result.elapsed:.2f}s")
    if result.found_perfect:
        print("Horario válido sin conflictos.")
        print_timetable(result.best, data)
    else:
        print(f"La mejor solución tiene {result.best.fitness} violaciones. Pruebe más generaciones o una población mayor.")

    out_dir = Path(args.out)
    export_outputs(result, data, args.mode, out_dir)
    print(f"Se guardaron resultados en {out_dir}/schedule.csv, history.csv y metrics.csv")


if __name__ == "__main__":
    main()
