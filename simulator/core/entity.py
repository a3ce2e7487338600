import simpy
from abc import ABC, abstractmethod


class Entity(ABC):
    """
    Abstract base class for components that own a SimPy process.

    The entity starts its run() generator as a process on construction and
    keeps a string state whose transitions are traced to the console.
    Identity is supplied by the caller; no id is generated here.
    """

    def __init__(self, env: simpy.Environment, name: str):
        """
        Initialize the entity.

        Args:
            env: The SimPy simulation environment this entity belongs to.
            name: Entity name, used as its identity in logs and topics.
        """
        self.env = env
        self.name: str = name

        # Concrete classes set their real initial state in __init__
        self.state: str = "initial_state"

        self._process = self.env.process(self.run())

        print(f'{self.env.now:.2f}: Entity "{self.name}" ({self.__class__.__name__}) created.')

    @abstractmethod
    def run(self):
        """
        Generator serving as the entity's SimPy process body.

        Use yield to wait for events and advance simulation time.
        """
        pass

    def set_state(self, new_state: str):
        """
        Transition the entity's state.

        Args:
            new_state: Target state.
        """
        if self.state != new_state:
            old_state = self.state
            self.state = new_state
            self._on_state_changed(old_state, new_state)

    def get_state(self) -> str:
        return self.state

    def _on_state_changed(self, old_state: str, new_state: str):
        """Hook for subclasses; the base implementation only logs."""
        print(f'{self.env.now:.2f}: Entity "{self.name}" ({self.__class__.__name__}) state transition: {old_state} -> {new_state}')

    @property
    def process(self) -> simpy.Process:
        """The SimPy process running this entity's run() body."""
        return self._process
