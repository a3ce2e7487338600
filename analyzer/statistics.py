import json
import re
from datetime import datetime

import matplotlib.pyplot as plt
import numpy as np


class DispatchStatistics:
    """
    Receives every broker publication and, as an independent "recorder",
    keeps what is needed to analyse a dispatch run afterwards:
    car trajectories, door events, mode changes, request lifecycle and
    "no car available" reports. All events are also collected in
    JSON Lines format for offline playback.
    """
    def __init__(self, env, broadcast_pipe):
        self.env = env
        self.broadcast_pipe = broadcast_pipe
        self.car_trajectories = {}  # {car_id: [(timestamp, floor), ...]}
        self.door_events_history = {}  # {car_id: [(timestamp, floor, event_type), ...]}
        self.mode_history = {}  # {car_id: [(timestamp, mode), ...]}
        self.enqueued = {}  # {request_id: (timestamp, request_dict)}
        self.dequeued = {}  # {request_id: (timestamp, floor, car_id)}
        self.dequeue_order = []  # request ids in retirement order
        self.no_car_events = []  # [(timestamp, request_id)]

        self.event_log = []
        self.simulation_metadata = {}

    def _add_event_log(self, event_type, event_data):
        self.event_log.append({
            "time": self.env.now,
            "type": event_type,
            "data": event_data
        })

    def set_simulation_metadata(self, metadata):
        """
        Set simulation metadata (called before simulation starts).

        Args:
            metadata (dict): Simulation configuration (num_floors, cars, etc.)
        """
        self.simulation_metadata = {
            "format_version": "1.0",
            "timestamp": datetime.now().isoformat(),
            "config": metadata
        }

    def _record_floor(self, car_id, timestamp, floor):
        trajectory = self.car_trajectories.setdefault(car_id, [])
        # Record only when the floor actually changes
        if not trajectory or trajectory[-1][1] != floor:
            trajectory.append((timestamp, floor))

    def start_listening(self):
        """
        Main process intercepting the broker's broadcast pipe.
        """
        while True:
            data = yield self.broadcast_pipe.get()

            topic = data.get('topic', '')
            message = data.get('message', {})
            timestamp = message.get('timestamp', self.env.now)

            car_match = re.match(r'car/(.*?)/(status|move|mode|door_events)$', topic)
            if car_match:
                car_id, kind = car_match.group(1), car_match.group(2)

                if kind in ('status', 'move'):
                    self._record_floor(car_id, timestamp, message.get('floor'))
                    if kind == 'move':
                        self._add_event_log('car_move', {
                            'car': car_id,
                            'from_floor': message.get('from_floor'),
                            'floor': message.get('floor'),
                            'direction': message.get('direction')
                        })

                elif kind == 'mode':
                    self.mode_history.setdefault(car_id, []).append((timestamp, message.get('new_mode')))
                    self._add_event_log('car_mode', {
                        'car': car_id,
                        'old_mode': message.get('old_mode'),
                        'new_mode': message.get('new_mode')
                    })

                elif kind == 'door_events':
                    event_type = message.get('event_type')
                    floor = message.get('floor')
                    self.door_events_history.setdefault(car_id, []).append((timestamp, floor, event_type))
                    self._add_event_log('door_' + event_type.lower(), {'car': car_id, 'floor': floor})
                continue

            if topic == 'dispatcher/queue':
                request = message.get('request', {})
                request_id = request.get('request_id')
                if message.get('action') == 'ENQUEUED':
                    self.enqueued[request_id] = (timestamp, request)
                    self._add_event_log('request_enqueued', request)
                else:
                    self.dequeued[request_id] = (timestamp, message.get('floor'), message.get('car_id'))
                    self.dequeue_order.append(request_id)
                    self._add_event_log('request_dequeued', {
                        'request_id': request_id,
                        'floor': message.get('floor'),
                        'car': message.get('car_id')
                    })

            elif topic == 'dispatcher/no_car_available':
                request_id = message.get('request', {}).get('request_id')
                self.no_car_events.append((timestamp, request_id))
                self._add_event_log('no_car_available', {
                    'request_id': request_id,
                    'retry_in': message.get('retry_in')
                })

            elif topic == 'dispatcher/state':
                self._add_event_log('dispatcher_state', {
                    'old_state': message.get('old_state'),
                    'new_state': message.get('new_state')
                })

    # --- Queries ---

    def floors_visited(self, car_id):
        """Floor sequence of a car, one entry per floor change."""
        return [floor for _, floor in self.car_trajectories.get(car_id, [])]

    def stops(self, car_id):
        """Floors where the car opened its doors, in order."""
        return [floor for _, floor, event_type in self.door_events_history.get(car_id, []) if event_type == 'OPEN']

    def get_service_times(self, kind=None):
        """
        Seconds from enqueue to retirement for every retired request.

        Args:
            kind: 'FLOOR_CALL' or 'DESTINATION' to filter, None for all
        """
        times = []
        for request_id, (dequeued_at, _, _) in self.dequeued.items():
            if request_id not in self.enqueued:
                continue
            enqueued_at, request = self.enqueued[request_id]
            if kind is not None and request.get('kind') != kind:
                continue
            times.append(dequeued_at - enqueued_at)
        return times

    def get_wait_times(self):
        """Floor call waiting time (call to doors opening at the call floor)."""
        return self.get_service_times('FLOOR_CALL')

    def get_outstanding_requests(self):
        return [request_id for request_id in self.enqueued if request_id not in self.dequeued]

    @staticmethod
    def _describe(values):
        if not values:
            return {'count': 0}
        data = np.asarray(values, dtype=float)
        return {
            'count': int(data.size),
            'mean': float(np.mean(data)),
            'median': float(np.median(data)),
            'p90': float(np.percentile(data, 90)),
            'max': float(np.max(data)),
        }

    def summary(self):
        return {
            'requests_enqueued': len(self.enqueued),
            'requests_retired': len(self.dequeued),
            'requests_outstanding': len(self.get_outstanding_requests()),
            'no_car_events': len(self.no_car_events),
            'stops': {car_id: len(self.stops(car_id)) for car_id in self.door_events_history},
            'wait_time': self._describe(self.get_wait_times()),
            'ride_time': self._describe(self.get_service_times('DESTINATION')),
        }

    def print_summary(self):
        summary = self.summary()
        print("\n" + "=" * 60)
        print("   DISPATCH SUMMARY")
        print("=" * 60)
        print(f"  Requests enqueued:    {summary['requests_enqueued']:>6}")
        print(f"  Requests retired:     {summary['requests_retired']:>6}")
        print(f"  Requests outstanding: {summary['requests_outstanding']:>6}")
        print(f"  No-car reports:       {summary['no_car_events']:>6}")
        for car_id, count in summary['stops'].items():
            print(f"  Stops by {car_id}: {count}")

        for label, key in (("Floor call wait", 'wait_time'), ("Destination ride", 'ride_time')):
            stats = summary[key]
            if stats['count'] == 0:
                continue
            print(f"\n{label}:")
            print(f"  Count:   {stats['count']:>6}")
            print(f"  Average: {stats['mean']:>6.2f} seconds")
            print(f"  Median:  {stats['median']:>6.2f} seconds")
            print(f"  P90:     {stats['p90']:>6.2f} seconds")
            print(f"  Max:     {stats['max']:>6.2f} seconds")
        print("=" * 60)

    # --- Output ---

    def plot_trajectory_diagram(self, output_filename='car_trajectory_diagram.png', show=False):
        """Draw the travel diagram (floor over time) with door stops marked."""
        print("\n--- Plotting: Car Trajectory Diagram ---")
        fig = plt.figure(figsize=(14, 8))

        colors = ['#1f77b4', '#ff7f0e', '#2ca02c', '#d62728', '#9467bd', '#8c564b']
        for idx, car_id in enumerate(sorted(self.car_trajectories)):
            trajectory = self.car_trajectories[car_id]
            if not trajectory:
                continue
            color = colors[idx % len(colors)]
            times, floors = zip(*trajectory)
            # Extend the last segment to the end of the run
            times = list(times) + [max(self.env.now, times[-1])]
            floors = list(floors) + [floors[-1]]
            plt.step(times, floors, where='post', label=car_id, linewidth=2.5, color=color, alpha=0.8)

            opens = [(t, f) for t, f, event_type in self.door_events_history.get(car_id, []) if event_type == 'OPEN']
            if opens:
                open_times, open_floors = zip(*opens)
                plt.scatter(open_times, open_floors, marker='s', s=60, color=color, zorder=5)

        for request_id, (enqueued_at, request) in self.enqueued.items():
            if request.get('kind') != 'FLOOR_CALL':
                continue
            arrow = '↑' if request.get('direction') == 'UP' else '↓'
            plt.annotate(arrow, (enqueued_at, request.get('floor')), ha='center', va='center', fontsize=14)

        plt.title("Car Trajectory Diagram")
        plt.xlabel("Time (s)")
        plt.ylabel("Floor")
        plt.grid(True, which='both', linestyle='--', alpha=0.7)

        all_floors = [floor for trajectory in self.car_trajectories.values() for _, floor in trajectory]
        if all_floors:
            plt.yticks(range(int(min(all_floors)), int(max(all_floors)) + 1))
        if self.car_trajectories:
            plt.legend(loc='upper right', fontsize=10)

        plt.savefig(output_filename, dpi=150, bbox_inches='tight')
        print(f"Trajectory diagram saved to: {output_filename}")

        if show:
            plt.show()
        plt.close(fig)
        return output_filename

    def save_event_log(self, filename='dispatch_log.jsonl'):
        """
        Save the event log to a JSON Lines file.

        Args:
            filename (str): Name of the output file
        """
        print(f"\nSaving event log to {filename}...")

        with open(filename, 'w', encoding='utf-8') as f:
            if self.simulation_metadata:
                f.write(json.dumps({
                    "type": "metadata",
                    "data": self.simulation_metadata
                }) + '\n')

            for event in self.event_log:
                f.write(json.dumps(event, ensure_ascii=False) + '\n')

        print(f"Event log saved: {len(self.event_log)} events written to {filename}")
        return filename
