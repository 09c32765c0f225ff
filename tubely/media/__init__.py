"""Media inspection and repackaging backed by ffprobe/ffmpeg."""
