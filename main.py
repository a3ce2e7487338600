import argparse
import sys

# Configuration
from config import load_group_control_config, load_simulation_config

# Simulator components
from simulator.infrastructure.message_broker import MessageBroker
from simulator.infrastructure.realtime_env import create_environment
from simulator.core.car import Car
from simulator.core.dispatcher import Dispatcher
from simulator.core.request import Direction

# Car selection
from group_control import create_selector

# Analyzer
from analyzer.statistics import DispatchStatistics


DEFAULT_SIM_CONFIG = "scenarios/simulation/demo_building.yaml"
DEFAULT_GC_CONFIG = "scenarios/group_control/first_available.yaml"


def scripted_caller(env, dispatcher, call):
    """Process placing one scripted floor call after its delay"""
    yield env.timeout(call.delay)
    dispatcher.floor_call(call.floor, Direction(call.direction), destination_floor=call.destination_floor)


def build_simulation(sim_config, gc_config):
    """
    Create environment, broker, statistics, dispatcher and cars from configuration

    Returns:
        (env, dispatcher, statistics)
    """
    env = create_environment(sim_config.realtime_factor)
    broker = MessageBroker(env, verbose=sim_config.verbose)

    statistics = DispatchStatistics(env, broker.get_broadcast_pipe())
    env.process(statistics.start_listening())

    num_floors = sim_config.building.num_floors
    selector = create_selector(gc_config.selector, num_floors=num_floors)

    dispatcher = Dispatcher(
        env, "Dispatcher", broker, num_floors,
        selector=selector,
        retry_backoff=sim_config.dispatcher.retry_backoff,
        retry_backoff_max=sim_config.dispatcher.retry_backoff_max,
    )

    for i in range(1, sim_config.car.num_cars + 1):
        car = Car(
            env, f"Car_{i}", broker, num_floors,
            start_floor=sim_config.car.start_floor,
            velocity=sim_config.car.velocity,
            door_dwell=sim_config.car.effective_door_dwell,
            capacity_max=sim_config.car.capacity_max,
        )
        dispatcher.attach(car)

    statistics.set_simulation_metadata({
        'num_floors': num_floors,
        'num_cars': sim_config.car.num_cars,
        'velocity': sim_config.car.velocity,
        'door_dwell': sim_config.car.effective_door_dwell,
        'selector': selector.get_strategy_name(),
        'calls': [call.to_dict() for call in sim_config.traffic.calls],
    })

    for call in sim_config.traffic.calls:
        env.process(scripted_caller(env, dispatcher, call))

    return env, dispatcher, statistics


def run_simulation(sim_config_path=DEFAULT_SIM_CONFIG, gc_config_path=DEFAULT_GC_CONFIG,
                   event_log_path=None, plot_path=None):
    """
    Set up and run the entire simulation

    Args:
        sim_config_path: Path to simulation configuration YAML file
        gc_config_path: Path to group control configuration YAML file
        event_log_path: Optional JSON Lines output file
        plot_path: Optional trajectory diagram output file
    """
    print("--- Loading Configuration ---")
    sim_config = load_simulation_config(sim_config_path)
    gc_config = load_group_control_config(gc_config_path)
    print(f"Simulation Config: {sim_config_path}")
    print(f"Group Control Config: {gc_config_path}")

    print("\n--- Simulation Setup ---")
    env, dispatcher, statistics = build_simulation(sim_config, gc_config)

    print("\n--- Simulation Start ---")
    # Without a duration the run ends once every call is placed and the queue drains
    env.run(until=sim_config.traffic.simulation_duration)
    print(f"\n--- Simulation End at {env.now:.2f} ---")
    print(dispatcher)

    statistics.print_summary()
    if event_log_path:
        statistics.save_event_log(event_log_path)
    if plot_path:
        statistics.plot_trajectory_diagram(plot_path)

    return dispatcher, statistics


def main(argv=None):
    parser = argparse.ArgumentParser(description="Single-car elevator dispatch simulation")
    parser.add_argument("sim_config", nargs="?", default=DEFAULT_SIM_CONFIG,
                        help="simulation configuration YAML")
    parser.add_argument("gc_config", nargs="?", default=DEFAULT_GC_CONFIG,
                        help="group control (selector) configuration YAML")
    parser.add_argument("--event-log", default=None, help="write a JSON Lines event log to this file")
    parser.add_argument("--plot", default=None, help="save a trajectory diagram to this PNG file")
    args = parser.parse_args(argv)

    run_simulation(args.sim_config, args.gc_config, event_log_path=args.event_log, plot_path=args.plot)
    return 0


if __name__ == '__main__':
    sys.exit(main())
