class ConfigNode:
    def __init__(self, key, parent=None):
        self.key = key
        self.children = {}
        self.parent = parent

    def add(self, key, child):
        self.children[key] = child
        child.parent = self

    def update(self, other, extra_data=None):
        def _recursive_upsert(other_dict, keys):
            for key, val in other_dict.items():
                new_keys = keys + [key]
                if isinstance(val, dict):
                    _recursive_upsert(val, new_keys)
                else:
                    self.upsert_from_list(new_keys, val, extra_data)

        _recursive_upsert(other, keys=[])

    def get_child(self, key, constructor=None):
        if key in self.children:
            return self.children[key]
        if constructor is None:
            raise KeyError(f"Cannot get key {key}")
        child = self.children[key] = constructor()
        return child

    def add_child(self, key):
        self.get_child(key, lambda: ConfigNode(key, parent=self))

    def remove_child(self, key):
        self.children.pop(key)

    def upsert_from_list(self, keys, value, extra_data=None):
        key, *next_keys = keys
        if len(next_keys) == 0:
            leaf = self.get_child(
                key,
                lambda: ConfigLeaf(
                    key, parent=self, value=value, extra_data=extra_data
                ),
            )
            if not isinstance(leaf, ConfigLeaf):
                raise RuntimeError(f"Expected a ConfigLeaf, got {leaf}!")
            leaf.value = value
            leaf.extra_data = extra_data
        else:
            next_node = self.get_child(key, lambda: ConfigNode(key, parent=self))
            if not isinstance(next_node, ConfigNode):
                raise RuntimeError(f"Expected a ConfigNode, got {next_node}!")
            next_node.upsert_from_list(next_keys, value, extra_data)

    def get(self, *keys):
        key, *remainder = keys
        child = self.get_child(key)
        if len(remainder) == 0:
            return child
        return child.get(*remainder)

    def pop_leaf(self, keys):
        *node_keys, leaf_key = keys
        node = self.get(*node_keys) if node_keys else self
        node.children.pop(leaf_key)

    def as_dict(self, callback=lambda leaf: leaf.value):
        data = {}
        for key, child in self.children.items():
            if isinstance(child, ConfigLeaf):
                data[key] = callback(child)
            else:
                child_data = child.as_dict(callback)
                # empty sections are not worth serializing
                if child_data:
                    data[key] = child_data
        return data

    def __repr__(self):
        return f"<Node {self.key}>"

    def __contains__(self, item):
        return item in self.children


class ConfigLeaf:
    def __init__(self, key, parent: ConfigNode, value, extra_data=None):
        self.key = key
        self._value = value
        self.parent = parent
        self.extra_data = extra_data

    def get_tree(self):
        node = self
        parents = []
        while node is not None:
            parents.append(node)
            node = node.parent
        return reversed(parents)

    @property
    def value(self):
        return self._value

    @value.setter
    def value(self, new_value):
        if type(self.value) == type(new_value):
            self._value = new_value
            return
        tree_str = ".".join(node.key for node in self.get_tree() if node.key)
        msg = f"Error when setting {tree_str}.\n"
        msg += (
            "Tried to assign a value of type "
            f"{type(new_value)}, expected type {type(self.value)}."
        )
        source = (self.extra_data or {}).get("source", None)
        if source:
            msg += f"\nThis entry was last modified in {source}."
        raise TypeError(msg)

    def __repr__(self):
        return f"<Leaf {self.key}: {self.value}>"
