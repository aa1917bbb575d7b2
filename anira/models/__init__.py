"""Sub-package set aside for model configurations; it holds no modules."""