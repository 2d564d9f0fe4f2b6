[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kvmstream"
version = "0.1.0"
description = "RTP packetizing of H.264, PCM mixing, frame dumping and capture helpers for KVM video streaming"
requires-python = ">=3.10"
dependencies = []
keywords = ["rtp", "h264", "annexb", "pcm", "webrtc", "sdp", "v4l2", "kvm", "streaming"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video",
    "Topic :: Multimedia :: Sound/Audio",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["kvmstream"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
