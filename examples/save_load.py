import numpy as np
import nnbind
from nnbind.core import Tensor
from nnbind.nn import InstanceNorm3d, Linear, ReLU, Sequential, AvgPool2d

nnbind.setup_logging("INFO")
nnbind.manual_seed(42)

# Generate synthetic data
np.random.seed(42)
X = np.random.randn(4, 100).astype(np.float32)  # 4 samples, 100 features
X_tensor = Tensor.from_numpy(X)

# Create model
model = Sequential(("lin1", Linear(100, 10)), ("relu", ReLU()), ("lin2", Linear(10, 1)))
print(model)
for name, param in model.named_parameters():
    print(f"{name}: {param.shape}")

# Save, then load into a freshly initialized copy
model.save("model.nnb")
restored = Sequential(("lin1", Linear(100, 10)), ("relu", ReLU()), ("lin2", Linear(10, 1)))
restored.load("model.nnb")

print(f"\nOriginal prediction: {model(X_tensor).to_numpy().ravel()}")
print(f"Restored prediction: {restored(X_tensor).to_numpy().ravel()}")

# Normalization and pooling on volumetric / image input
volume = nnbind.randn(2, 3, 4, 8, 8)
with InstanceNorm3d(3) as norm:
    normalized = norm(volume).to_numpy()
print(f"\nInstance-normalized mean per channel: {normalized.mean(axis=(2, 3, 4))[0]}")

images = nnbind.randn(2, 3, 8, 8)
with AvgPool2d(2) as pool:
    print(f"Pooled shape: {pool(images).shape}")

restored.dispose()
model.dispose()
