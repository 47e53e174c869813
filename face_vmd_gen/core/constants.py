"""Constants and default values for keyframe generation."""

import torch

# Working precision for all geometry
DTYPE = torch.float64

# Action Unit ids (FACS numbering as reported by the tracking oracle)
AU_INNER_BROW_RAISER = 1
AU_OUTER_BROW_RAISER = 2
AU_BROW_LOWERER = 4
AU_UPPER_LID_RAISER = 5
AU_CHEEK_RAISER = 6
AU_LID_TIGHTENER = 7
AU_NOSE_WRINKLER = 9
AU_UPPER_LIP_RAISER = 10
AU_LIP_CORNER_PULLER = 12
AU_DIMPLER = 14
AU_LIP_CORNER_DEPRESSOR = 15
AU_CHIN_RAISER = 17
AU_LIP_STRETCHER = 20
AU_LIP_TIGHTENER = 23
AU_LIPS_PART = 25      # also fires for the "i" mouth shape
AU_JAW_DROP = 26       # used for the "a" mouth shape
AU_LIP_SUCK = 28
AU_BLINK = 45

# Dense vector size (codes 0..45)
AU_SIZE = 46

# Oracle intensity scale maximum
ACTION_UNIT_MAXVAL = 5.0

# Label layout: "AU01_r" -> code digits live at [2:4]
AU_LABEL_CODE_SLICE = slice(2, 4)

# Bone names
BONE_HEAD = "頭"
BONE_CENTER = "センター"
BONE_LEFT_EYE = "左目"
BONE_RIGHT_EYE = "右目"

# Morph names
MORPH_A = "あ"
MORPH_I = "い"
MORPH_U = "う"
MORPH_SMILE = "にやり"
MORPH_FROWN_CORNER = "∧"
MORPH_BLINK = "まばたき"
MORPH_CHEEK_RAISER = "CheekRaiser"   # pseudo-morph, consumed by refinement
MORPH_SURPRISE = "びっくり"
MORPH_TROUBLED = "困る"
MORPH_SERIOUS = "真面目"
MORPH_ANGER = "怒り"
MORPH_BROW_DOWN = "下"
MORPH_BROW_UP = "上"

# Morphs produced by refinement
MORPH_LAUGH_EYES = "笑い"
MORPH_PLEASED = "にこり"

# Expression rule thresholds
MOUTH_GAIN = 2.0
MOUTH_EXCLUSION_THRESHOLD = 0.1
BLINK_THRESHOLD = 0.2

# Refinement thresholds
CHEEK_RAISE_THRESHOLD = 0.5
PLEASED_THRESHOLD = 0.5

# Head translation -> center position
DEPTH_ORIGIN = 1000.0          # tracking units (mm) at which the center is neutral
MMD_UNITS_PER_METER = 12.5
CENTER_SCALE_DIVISOR = 2.0

# Eye rotation damping toward identity
GAZE_DAMPING = 0.25

# Canonical avatar forward direction
FORWARD_VECTOR = (0.0, 0.0, -1.0)

# Eyeball centre relative to the eye-socket centre, head-local frame (mm)
EYEBALL_OFFSET = (0.0, -3.5, 7.0)

# Numerical guard for divisions and normalizations
EPSILON = 1e-9

# Eye model names exposed by the tracking model
EYE_MODEL_NAMES = {
    "left": "left_eye_28",
    "right": "right_eye_28",
}

# 68-point face model indices
FACE_LANDMARK_COUNT = 68
LANDMARK_POINTS = {
    # Eyelid corners [image-left, image-right]; right eye is offset by 6
    "left_eye_corners": [36, 39],
    "right_eye_corners": [42, 45],
}

# Hierarchical eye model: first 8 points outline the iris
EYE_LANDMARK_COUNT = 28
IRIS_LANDMARK_COUNT = 8
