import cv2, numpy as np, yaml, PIL
print("OpenCV:", cv2.__version__)
print("NumPy:", np.__version__)
print("PyYAML:", yaml.__version__)
print("Pillow:", PIL.__version__)
x = np.zeros((64, 64, 4), np.uint8)
print("RGBA round trip OK:", cv2.cvtColor(cv2.cvtColor(x, cv2.COLOR_RGBA2BGRA), cv2.COLOR_BGRA2RGBA).shape)
