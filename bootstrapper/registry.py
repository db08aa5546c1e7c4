# bootstrapper/registry.py
# -*- coding: utf-8 -*-
"""
Registry for built-in bootstrap steps.

Step classes register themselves with the StepRegistry.register decorator
under a unique name, together with their metadata (dependencies, platforms,
description).
"""

from typing import Any, Dict, List, Optional, Type

from bootstrapper.base_step import DEFAULT_METADATA, BaseStep
from bootstrapper.exceptions import PlanError


class StepRegistry:
    """
    Registry for step classes.

    This class provides a decorator for registering step classes and
    methods for looking them up and resolving their dependencies.
    """

    _registry: Dict[str, Type[BaseStep]] = {}

    @classmethod
    def register(cls, name: str, metadata: Optional[Dict[str, Any]] = None):
        """
        Decorator for registering step classes.

        Args:
            name: The name of the step.
            metadata: Optional metadata for the step. Missing keys take the
                values of DEFAULT_METADATA.

        Returns:
            A decorator function that registers the step class.

        Raises:
            PlanError: If a step with this name is already registered.
        """

        def decorator(step_class: Type[BaseStep]) -> Type[BaseStep]:
            if name in cls._registry:
                raise PlanError(f"Step with name '{name}' already registered")

            step_class.name = name
            step_class.metadata = {**DEFAULT_METADATA, **(metadata or {})}
            cls._registry[name] = step_class
            return step_class

        return decorator

    @classmethod
    def unregister(cls, name: str) -> None:
        cls._registry.pop(name, None)

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._registry

    @classmethod
    def get_step(cls, name: str) -> Type[BaseStep]:
        """
        Get a step class by name.

        Raises:
            PlanError: If no step with the given name is registered.
        """
        if name not in cls._registry:
            raise PlanError(f"No step registered with name '{name}'")

        return cls._registry[name]

    @classmethod
    def get_all_steps(cls) -> Dict[str, Type[BaseStep]]:
        """
        Get all registered steps, in registration order.
        """
        return cls._registry.copy()

    @classmethod
    def get_step_dependencies(cls, name: str) -> List[str]:
        step_class = cls.get_step(name)
        return list(step_class.metadata.get("dependencies", []))

    @classmethod
    def resolve_dependencies(cls, names: List[str]) -> List[str]:
        """
        Resolve dependencies for a list of registered steps.

        Dependencies that are not in `names` are pulled in. The result keeps
        the order of `names` wherever the dependencies allow it.

        Args:
            names: A list of step names.

        Returns:
            A list of step names in the order they should run.

        Raises:
            PlanError: If any step or dependency is not registered, or
                there is a circular dependency.
        """
        result: List[str] = []
        visited = set()
        temp_visited = set()

        def visit(name: str):
            if name in temp_visited:
                raise PlanError(
                    f"Circular dependency detected involving '{name}'"
                )

            if name in visited:
                return

            temp_visited.add(name)

            for dependency in cls.get_step_dependencies(name):
                visit(dependency)

            temp_visited.remove(name)
            visited.add(name)
            result.append(name)

        for name in names:
            if name not in visited:
                visit(name)

        return result
