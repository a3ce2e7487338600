import simpy


class MessageBroker:
    """
    Observer hook for the dispatch simulation.
    Implements a topic-based publish-subscribe model on top of SimPy Stores.

    Every publication is also mirrored to a broadcast pipe, which is what
    recorders such as DispatchStatistics listen to.
    """
    def __init__(self, env: simpy.Environment, verbose: bool = True):
        """
        Initialize the message broker

        Args:
            env (simpy.Environment): SimPy environment
            verbose (bool): Print every publication to the console
        """
        self.env = env
        self.verbose = verbose
        self.topics = {}  # Store per subscribed topic
        self.broadcast_pipe = simpy.Store(self.env)

    def get_pipe(self, topic: str) -> simpy.Store:
        """
        Get or create the Store for the specified topic
        """
        if topic not in self.topics:
            self.topics[topic] = simpy.Store(self.env)
        return self.topics[topic]

    def put(self, topic: str, message):
        """
        Publish a message to the specified topic.

        Only topics somebody has asked for (via get/get_pipe) keep a Store;
        the broadcast pipe always receives the message.
        """
        if self.verbose:
            print(f"{self.env.now:.2f} [Broker] Publish on '{topic}': {message}")
        self.broadcast_pipe.put({'topic': topic, 'message': message})
        pipe = self.topics.get(topic)
        if pipe is not None:
            return pipe.put(message)
        return None

    def get(self, topic: str):
        """
        Wait to receive (get) a message from the specified topic
        """
        pipe = self.get_pipe(topic)
        return pipe.get()

    def get_broadcast_pipe(self) -> simpy.Store:
        """Returns the global broadcast pipe"""
        return self.broadcast_pipe

    def get_current_time(self) -> float:
        """Current simulation time, for components that should not touch env directly"""
        return self.env.now
