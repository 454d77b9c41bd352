# Galeri: son dört çıktı (en yenisi önce) ya da örnek görseller

from typing import List, Optional

from .schemas import GalleryItem, Job

GALLERY_SIZE = 4

SAMPLE_GALLERY = [
    GalleryItem(src="/images/dog.webp", title="1", prompt="A golden retriever portrait as a tattoo in the arm"),
    GalleryItem(src="/images/panda.webp", title="2", prompt="Panda on the arm"),
    GalleryItem(src="/images/tiger.webp", title="3", prompt="Tiger on the arm"),
    GalleryItem(src="/images/samurai.webp", title="4", prompt="Samurai on back"),
]


def gallery_for(job: Optional[Job]) -> List[GalleryItem]:
    """Tiles to show for the current job.

    No job yet -> the sample gallery. Otherwise the last four output URLs,
    indexed from the end, so tile "1" is the most recent artifact.
    """
    if job is None:
        return list(SAMPLE_GALLERY)
    recent = job.output[-GALLERY_SIZE:][::-1]
    return [GalleryItem(src=src, title=str(i)) for i, src in enumerate(recent, start=1)]


def placeholder_count(job: Optional[Job]) -> int:
    # iş bitene kadar dört ilerleme kutusu gösterilir
    if job is None or job.status == "succeeded":
        return 0
    return GALLERY_SIZE
