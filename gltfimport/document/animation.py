"""Keyframe animations: channels targeting node properties, driven by samplers."""

import enum
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

from gltfimport.document import fields as f
from gltfimport.document.index import Index
from gltfimport.errors import IndexOutOfBounds, InvalidValue


class Interpolation(str, enum.Enum):
    LINEAR = "LINEAR"
    STEP = "STEP"
    CUBICSPLINE = "CUBICSPLINE"


class TargetPath(str, enum.Enum):
    TRANSLATION = "translation"
    ROTATION = "rotation"
    SCALE = "scale"
    WEIGHTS = "weights"


@dataclass(frozen=True)
class AnimationSampler:
    input: Index
    output: Index
    interpolation: Interpolation = Interpolation.LINEAR
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "AnimationSampler":
        return cls(
            input=f.index(data, "input", path, is_required=True),
            output=f.index(data, "output", path, is_required=True),
            interpolation=f.enum_value(data, "interpolation", path, Interpolation,
                                       default=Interpolation.LINEAR),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )


@dataclass(frozen=True)
class ChannelTarget:
    path: TargetPath
    node: Index | None = None
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "ChannelTarget":
        return cls(
            path=f.enum_value(data, "path", path, TargetPath, is_required=True),
            node=f.index(data, "node", path),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )


@dataclass(frozen=True)
class Channel:
    # index into the owning Animation.samplers, not a document array
    sampler: Index["AnimationSampler"]
    target: ChannelTarget
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "Channel":
        return cls(
            sampler=f.index(data, "sampler", path, is_required=True),
            target=f.child(data, "target", path, ChannelTarget.from_json, is_required=True),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )


@dataclass(frozen=True)
class Animation:
    channels: tuple[Channel, ...]
    samplers: tuple[AnimationSampler, ...]
    name: str | None = None
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "Animation":
        return cls(
            channels=f.children(data, "channels", path, Channel.from_json, is_required=True),
            samplers=f.children(data, "samplers", path, AnimationSampler.from_json, is_required=True),
            name=f.optional(data, "name", path, "string"),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )

    def validate(self, ctx, path: str) -> None:
        if not self.channels:
            ctx.report(InvalidValue("an animation needs at least one channel", f.join(path, "channels")))
        if not self.samplers:
            ctx.report(InvalidValue("an animation needs at least one sampler", f.join(path, "samplers")))
        targets = set()
        for i, channel in enumerate(self.channels):
            sub = f"{path}.channels[{i}]"
            if not 0 <= channel.sampler < len(self.samplers):
                ctx.report(IndexOutOfBounds(f.join(sub, "sampler"), channel.sampler, len(self.samplers)))
            key = (channel.target.node, channel.target.path)
            if channel.target.node is not None and key in targets:
                ctx.report(InvalidValue("two channels target the same property", f.join(sub, "target")))
            targets.add(key)

    def references(self, path: str) -> Iterator[tuple[str, str, Index]]:
        for i, channel in enumerate(self.channels):
            if channel.target.node is not None:
                yield f"{path}.channels[{i}].target.node", "nodes", channel.target.node
        for i, sampler in enumerate(self.samplers):
            yield f"{path}.samplers[{i}].input", "accessors", sampler.input
            yield f"{path}.samplers[{i}].output", "accessors", sampler.output
