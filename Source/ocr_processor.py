"""
OCR Processing module for Groupify
Handles parallel OCR processing of receipt images
"""

import logging
import time
import numpy as np
from typing import List, Tuple
from concurrent.futures import ThreadPoolExecutor, as_completed
from PIL import Image, ImageEnhance, ImageFilter
import cv2
import pytesseract

from config import OCR_LANGUAGES, OCR_PSM, IMAGE_REGION_OVERLAP_PX
from data_models import ProcessingMetrics

logger = logging.getLogger(__name__)


class ParallelOCRProcessor:
    """Parallel OCR processing of receipt images"""

    def __init__(self, num_workers: int = 4, languages: str = OCR_LANGUAGES):
        self.num_workers = num_workers
        self.languages = languages
        self.metrics = ProcessingMetrics()

    def _get_ocr_language(self) -> str:
        """Requested languages that Tesseract actually has, falling back to English"""
        try:
            available = set(pytesseract.get_languages(config=''))
        except (pytesseract.TesseractError, OSError) as e:
            logger.warning("Could not check OCR languages: %s", e)
            return 'eng'
        wanted = [lang for lang in self.languages.split('+') if lang in available]
        return '+'.join(wanted) if wanted else 'eng'

    def preprocess_image(self, image: Image.Image) -> Image.Image:
        """Preprocess image to improve OCR accuracy"""
        # Grayscale
        if image.mode != 'L':
            image = image.convert('L')

        enhancer = ImageEnhance.Contrast(image)
        image = enhancer.enhance(2.0)

        image = image.filter(ImageFilter.SHARPEN)

        # Remove noise with bilateral filter (using OpenCV)
        img_array = np.array(image)
        img_array = cv2.bilateralFilter(img_array, 9, 75, 75)
        return Image.fromarray(img_array)

    def split_image_into_regions(self, image: Image.Image) -> List[Tuple[int, Image.Image]]:
        """Split image into horizontal bands; each band overlaps the next one"""
        width, height = image.size
        region_height = height // self.num_workers
        regions = []

        for i in range(self.num_workers):
            y_start = i * region_height
            y_end = height if i == self.num_workers - 1 else (i + 1) * region_height + IMAGE_REGION_OVERLAP_PX

            region = image.crop((0, y_start, width, min(y_end, height)))
            regions.append((i, region))

        return regions

    def process_region(self, region_data: Tuple[int, Image.Image], lang: str) -> str:
        region_id, region_image = region_data
        logger.debug("Worker %d: processing region", region_id + 1)
        return pytesseract.image_to_string(
            region_image,
            lang=lang,
            config=f'--psm {OCR_PSM}'
        )

    def process_image_parallel(self, image_path: str) -> str:
        """Run OCR over the image with one worker per region, text joined top to bottom"""
        start_time = time.time()

        with Image.open(image_path) as image:
            logger.info("Image loaded: %dx%d pixels", image.size[0], image.size[1])
            processed_image = self.preprocess_image(image)

        regions = self.split_image_into_regions(processed_image)
        self.metrics.regions_processed = len(regions)
        lang = self._get_ocr_language()

        full_text = []
        with ThreadPoolExecutor(max_workers=self.num_workers) as executor:
            future_to_region = {
                executor.submit(self.process_region, region, lang): region[0]
                for region in regions
            }

            for future in as_completed(future_to_region):
                region_id = future_to_region[future]
                try:
                    full_text.append((region_id, future.result()))
                except pytesseract.TesseractError as e:
                    logger.warning("Worker %d failed: %s", region_id + 1, e)
                    full_text.append((region_id, ""))

        full_text.sort(key=lambda x: x[0])
        combined_text = '\n'.join(text for _, text in full_text)

        self.metrics.workers_used = self.num_workers
        self.metrics.processing_time = time.time() - start_time

        logger.info("OCR complete in %.2fs", self.metrics.processing_time)
        return combined_text
