"""Network-driven car that senses the road and traffic."""

from __future__ import annotations

from typing import Sequence

from agents.base import Car
from agents.network import CONTROL_OUTPUTS, NeuralNetwork, ShapeMismatchError
from environment.sensor import Sensor, SensorConfig, readings_to_inputs
from geometry.segments import Segment


class AICar(Car):
    """Car whose controls come from its own brain each frame.

    The brain must take one input per sensor ray and produce the four control
    outputs in forward/left/right/reverse order.
    """

    def __init__(
        self,
        x: float,
        y: float,
        brain: NeuralNetwork,
        sensor_config: SensorConfig | None = None,
        max_speed: float = 3.5,
        car_id: str = "",
        **kwargs: float,
    ) -> None:
        super().__init__(x, y, max_speed=max_speed, car_id=car_id, **kwargs)
        self.sensor = Sensor(sensor_config)
        if brain.input_count != self.sensor.ray_count or brain.output_count != CONTROL_OUTPUTS:
            raise ShapeMismatchError(
                f"Brain {brain.neuron_counts} does not fit {self.sensor.ray_count} rays "
                f"and {CONTROL_OUTPUTS} controls."
            )
        self.brain = brain

    def update(self, borders: Sequence[Segment], traffic: Sequence[Car]) -> None:
        self._advance_body(borders, traffic)
        readings = self.sensor.update(
            self.x,
            self.y,
            self.angle,
            borders,
            [other.polygon for other in traffic if other is not self],
        )
        if self.damaged:
            return
        outputs = self.brain.feed_forward(readings_to_inputs(readings))
        self.controls.forward = bool(outputs[0])
        self.controls.left = bool(outputs[1])
        self.controls.right = bool(outputs[2])
        self.controls.reverse = bool(outputs[3])
