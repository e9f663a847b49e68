from typing import IO, Any, Union, cast

import yaml


class PLMRKDumper(yaml.SafeDumper):
    # no anchors/aliases like &id001/*id001
    def ignore_aliases(self, data: Any) -> bool:  # type: ignore[override]
        return True


class PLMRKLoader(yaml.SafeLoader):
    pass


def yaml_dump(obj: Any) -> str:
    """
    Dump `obj` to YAML in block style, keeping the insertion order of mappings.
    """
    return yaml.dump(
        obj, Dumper=PLMRKDumper, sort_keys=False, default_flow_style=False
    )


def yaml_load(src: Union[str, IO[str]]) -> Any:
    """
    Load YAML written by `yaml_dump` from a string or an open text file.
    """
    if hasattr(src, "read"):
        text = cast(IO[str], src).read()
    else:
        text = cast(str, src)
    return yaml.load(text, Loader=PLMRKLoader)
